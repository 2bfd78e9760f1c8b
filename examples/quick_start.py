#!/usr/bin/env python3
"""
Quick Start Guide for Robust NXML.

Walks through parsing an entity file, recovering from broken markup,
editing the tree and writing it back in the engine's layout.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from robust_nxml import E, ElementLookupError, LexicalError, parse_lenient, parse_strict

ENTITY = """
<Entity name="player">
    <!-- movement -->
    <LuaComponent script_source_file="data/scripts/move.lua" execute_every_n_frame="-1"></LuaComponent>
    <SpriteComponent image_file="data/player.png" />
    <Tags>hero controllable</Tags>
</Entity>
"""

BROKEN = '<Entity name="player><LuaComponent script_source_file=move.lua/></Entity>'


def quick_start_example():
    """Quick start example showing basic usage."""

    print("🚀 QUICK START - Robust NXML")
    print("=" * 45)

    # Step 1: Strict parsing
    print("\n📄 Step 1: Parsing an entity")
    print("-" * 30)

    entity = parse_strict(ENTITY)
    print(f"✅ Root: {entity.tag} with {len(entity.children)} components")
    print(f"🏷️  Tags: {entity.require_child('Tags').text}")
    lua = entity.require_child("LuaComponent")
    print(f"📜 Script: {lua.attr('script_source_file')}")

    try:
        entity.require_child("PhysicsComponent")
    except ElementLookupError as e:
        print(f"⚠️  {e}")

    # Step 2: Lenient parsing of broken input
    print("\n🔧 Step 2: Recovering from broken markup")
    print("-" * 30)

    try:
        parse_strict(BROKEN)
    except LexicalError as e:
        print(f"❌ Strict parse failed: {e}")

    recovered, diagnostics = parse_lenient(BROKEN)
    print(f"✅ Lenient parse produced <{recovered.tag}> with {len(diagnostics)} diagnostics")
    for diagnostic in diagnostics:
        print(f"  - {diagnostic.kind.name} ({diagnostic.recovery.name}): {diagnostic}")

    # Step 3: Editing
    print("\n✏️  Step 3: Editing the tree")
    print("-" * 30)

    owned = entity.into_owned()
    owned.require_child("SpriteComponent").set_attr("alpha", 0.5)
    owned.remove_child(owned.require_child("LuaComponent"))
    owned.add_child(E.VelocityComponent(gravity_y=400, mass=1.5))
    print(f"✅ Components now: {[child.tag for child in owned.children]}")

    # Step 4: Output
    print("\n💾 Step 4: Writing it back")
    print("-" * 30)
    print(owned.to_string())
    print()
    print(owned.to_string(pretty=True))

    print("\n🎉 Quick start completed!")


if __name__ == "__main__":
    quick_start_example()
