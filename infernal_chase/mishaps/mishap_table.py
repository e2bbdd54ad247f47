"""
Infernal war machine mishap table.

A mishap occurs when a war machine takes damage from a single source at or
above its mishap threshold, or when it (or its driver using its ability
scores) fails an ability check by more than 5. Roll a d20 on the table.
"""

import copy

from infernal_chase.data_models import (
    CrewSave,
    Mishap,
    MishapDuration,
    MishapEffect,
    MishapSeverity,
    RepairAbility,
    generate_id,
)


MISHAP_TABLE: list[Mishap] = [
    Mishap(
        id="mishap_engine_flare",
        roll_min=1,
        roll_max=1,
        name="Engine Flare",
        effect=(
            "Fire erupts from the engine and engulfs the vehicle. Any creature that "
            "starts its turn on or inside the vehicle takes 10 (3d6) fire damage "
            "until this mishap ends."
        ),
        duration=MishapDuration.UNTIL_REPAIRED,
        repair_dc=15,
        repair_ability=RepairAbility.DEX,
        stackable=False,
        mechanical_effect=MishapEffect(recurring_damage="3d6 fire"),
    ),
    Mishap(
        id="mishap_locked_steering",
        roll_min=2,
        roll_max=4,
        name="Locked Steering",
        effect=(
            "The vehicle can move in a straight line only. It automatically fails "
            "Dexterity checks and Dexterity saving throws until this mishap ends."
        ),
        duration=MishapDuration.UNTIL_REPAIRED,
        repair_dc=15,
        repair_ability=RepairAbility.STR,
        stackable=False,
        mechanical_effect=MishapEffect(auto_fail_dex_checks=True),
    ),
    Mishap(
        id="mishap_furnace_rupture",
        roll_min=5,
        roll_max=7,
        name="Furnace Rupture",
        effect="The vehicle's speed decreases by 30 feet until this mishap ends.",
        duration=MishapDuration.UNTIL_REPAIRED,
        repair_dc=15,
        repair_ability=RepairAbility.STR,
        stackable=True,
        mechanical_effect=MishapEffect(speed_reduction=30),
    ),
    Mishap(
        id="mishap_weapon_malfunction",
        roll_min=8,
        roll_max=10,
        name="Weapon Malfunction",
        effect=(
            "One of the vehicle's weapons (DM's choice) can't be used until this "
            "mishap ends. If the vehicle has no functioning weapons, no mishap occurs."
        ),
        duration=MishapDuration.UNTIL_REPAIRED,
        repair_dc=20,
        repair_ability=RepairAbility.STR,
        stackable=True,
        mechanical_effect=MishapEffect(disable_weapons=["random"]),
    ),
    Mishap(
        id="mishap_blinding_smoke",
        roll_min=11,
        roll_max=13,
        name="Blinding Smoke",
        effect=(
            "The helm station fills with smoke and is heavily obscured until this "
            "mishap ends. Any creature in the helm station is blinded by the smoke."
        ),
        duration=MishapDuration.UNTIL_REPAIRED,
        repair_dc=15,
        repair_ability=RepairAbility.DEX,
        stackable=False,
        mechanical_effect=MishapEffect(zone_obscured="helm"),
    ),
    Mishap(
        id="mishap_shedding_armor",
        roll_min=14,
        roll_max=16,
        name="Shedding Armor",
        effect="The vehicle's damage threshold is reduced by 10 until this mishap ends.",
        duration=MishapDuration.UNTIL_REPAIRED,
        repair_dc=15,
        repair_ability=RepairAbility.STR,
        stackable=True,
        mechanical_effect=MishapEffect(damage_threshold_reduction=10),
    ),
    Mishap(
        id="mishap_damaged_axle",
        roll_min=17,
        roll_max=19,
        name="Damaged Axle",
        effect=(
            "The vehicle grinds and shakes uncontrollably. Until the mishap ends, the "
            "vehicle has disadvantage on all Dexterity checks, and all ability checks "
            "and attack rolls made by creatures on or inside the vehicle have disadvantage."
        ),
        duration=MishapDuration.UNTIL_REPAIRED,
        repair_dc=20,
        repair_ability=RepairAbility.DEX,
        stackable=False,
        mechanical_effect=MishapEffect(disadvantage_on_all_checks=True),
    ),
    Mishap(
        id="mishap_flip",
        roll_min=20,
        roll_max=20,
        name="Flip",
        effect=(
            "The vehicle flips over, falls prone, and comes to a dead stop in an "
            "unoccupied space. Any unsecured creature holding on to the outside of the "
            "vehicle must succeed on a DC 20 Strength saving throw or be thrown off, "
            "landing prone in a random unoccupied space within 20 feet of the overturned "
            "vehicle. Creatures inside the vehicle fall prone and must succeed on a DC 15 "
            "Strength saving throw or take 10 (3d6) bludgeoning damage."
        ),
        duration=MishapDuration.UNTIL_REPAIRED,
        # no repair DC: a flipped machine cannot be repaired in the field
        stackable=False,
        mechanical_effect=MishapEffect(
            vehicle_prone=True,
            crew_save_on_flip=CrewSave(dc=15, damage="3d6 bludgeoning"),
        ),
    ),
]

_ABILITY_NAMES = {
    RepairAbility.STR: "Strength",
    RepairAbility.DEX: "Dexterity",
}


def mishap_for_roll(roll: int) -> Mishap:
    """Table entry for a d20 result. Out-of-range rolls are clamped to 1-20."""
    clamped = max(1, min(20, roll))
    for entry in MISHAP_TABLE:
        if entry.roll_min <= clamped <= entry.roll_max:
            return entry
    return MISHAP_TABLE[0]


def table_entry_for(mishap: Mishap) -> Mishap:
    """The table definition an active mishap was copied from, matched by name."""
    for entry in MISHAP_TABLE:
        if entry.name == mishap.name:
            return entry
    return mishap


def mishap_severity(roll: int) -> MishapSeverity:
    if roll == 1:
        return MishapSeverity.SEVERE  # ongoing fire damage
    if 5 <= roll <= 7:
        return MishapSeverity.MINOR
    if 17 <= roll <= 19:
        return MishapSeverity.SEVERE
    if roll == 20:
        return MishapSeverity.CATASTROPHIC
    return MishapSeverity.MODERATE


def can_repair(mishap: Mishap) -> bool:
    return mishap.repair_dc is not None


def repair_description(mishap: Mishap) -> str:
    if not mishap.repair_dc or not mishap.repair_ability:
        return "This mishap cannot be repaired."
    ability = _ABILITY_NAMES[RepairAbility(mishap.repair_ability)]
    return f"DC {mishap.repair_dc} {ability} check (with disadvantage if vehicle is moving)"


def mishap_roll_range(mishap: Mishap) -> str:
    if mishap.roll_min == mishap.roll_max:
        return f"{mishap.roll_min}"
    return f"{mishap.roll_min}-{mishap.roll_max}"


def new_active_mishap(entry: Mishap) -> Mishap:
    """Independent copy of a table entry for a vehicle's active set."""
    active = copy.deepcopy(entry)
    active.id = generate_id(entry.id)
    return active
