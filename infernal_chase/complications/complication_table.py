"""
Chase complication tables.

At the end of each round of a chase a d20 is rolled for complications. On
11-20 nothing happens. On 1-10 the hellish terrain throws something at the
vehicles. Every scale has its own table; where a scale table has no entry
for a roll, the Avernus vehicle chase table supplies it.
"""

from typing import Optional, Union

from infernal_chase.data_models import (
    Complication,
    ComplicationEffect,
    ScaleName,
    SkillCheck,
)

NO_COMPLICATION_MIN = 11


def _entry(roll_min, roll_max, name, description, effect, **mechanical) -> Complication:
    return Complication(
        roll_min=roll_min,
        roll_max=roll_max,
        name=name,
        description=description,
        effect=effect,
        mechanical_effect=ComplicationEffect(**mechanical),
    )


# =============================================================================
# AVERNUS VEHICLE CHASE (d20, 1-10)
# =============================================================================

AVERNUS_COMPLICATIONS: list[Complication] = [
    _entry(
        1, 2, "Creature Chase",
        "You drive past a creature native to Avernus, and it chases after you.",
        "The DM chooses the creature. A new pursuer joins the chase.",
        target_vehicle="pursuer",
    ),
    _entry(
        3, 3, "Fire Tornado",
        "A fire tornado, 300 feet high and 30 feet wide at its base, crosses your path.",
        "DC 15 Dexterity save to avoid. Fail: Each creature without total cover makes "
        "DC 18 Dexterity save, taking 99 (18d10) fire damage on fail, half on success.",
        damage="18d10 fire",
        skill_check=SkillCheck(
            "Dexterity Save (Vehicle)", 15,
            "Crew without total cover: DC 18 Dex save or 99 fire damage (half on success)",
        ),
    ),
    _entry(
        4, 4, "Dust Cloud",
        "A swirling cloud of dust envelops the vehicle.",
        "Any creature on or inside the vehicle that doesn't have total cover is blinded "
        "until the start of its next turn unless using protective eyewear.",
        skill_check=SkillCheck("None", 0, "Exposed creatures are blinded until start of next turn"),
    ),
    _entry(
        5, 5, "Rock Pillars",
        "Natural pillars of rock can grant cover as the vehicle swerves between them.",
        "DC 15 Dexterity check using vehicle's Dexterity. Success: Three-quarters cover "
        "against attacks from other vehicles until start of driver's next turn.",
        skill_check=SkillCheck("Dexterity (Vehicle)", 15, "No cover gained"),
    ),
    _entry(
        6, 6, "Fiend Herd",
        "Your vehicle drives into a herd of lemures, manes, or other fiends.",
        "DC 15 Strength or Dexterity check (driver's choice) to plow through. "
        "Fail: Herd counts as 30 feet of difficult terrain.",
        skill_check=SkillCheck("Strength or Dexterity (Vehicle)", 15, "30 feet of difficult terrain"),
    ),
    _entry(
        7, 7, "Ledge Drop",
        "The vehicle drives off a 10-foot-high ledge and comes crashing down.",
        "Any unsecured creature on the outside must succeed DC 15 Dexterity save or "
        "tumble off, taking fall damage and landing prone.",
        damage="1d6 bludgeoning",
        skill_check=SkillCheck("Dexterity Save", 15, "Fall off vehicle, take fall damage, land prone"),
    ),
    _entry(
        8, 8, "Uneven Ground",
        "Uneven ground threatens to slow your vehicle's progress.",
        "DC 10 Dexterity check to navigate. Fail: Ground counts as 60 feet of difficult terrain.",
        skill_check=SkillCheck("Dexterity (Vehicle)", 10, "60 feet of difficult terrain"),
    ),
    _entry(
        9, 9, "Derelict Machines",
        "Derelict infernal war machines dot the landscape, rusted beyond repair and "
        "half buried in the dust.",
        "If vehicle uses Dash, driver must succeed DC 10 Dexterity check or crash into "
        "a derelict machine (see Crashing rules).",
        skill_check=SkillCheck("Dexterity (Vehicle)", 10, "Crash into derelict (Crashing rules)"),
    ),
    _entry(
        10, 10, "Ground Collapse",
        "Part of the ground gives way underneath the vehicle, causing it to roll over.",
        "DC 10 Dexterity save. Fail: Vehicle lands prone (upside down or on side), dead stop. "
        "When vehicle rolls, unsecured creatures on outside must succeed DC 20 Strength save "
        "or tumble off, landing prone within 20 feet.",
        skill_check=SkillCheck(
            "Dexterity Save (Vehicle)", 10,
            "Vehicle prone, dead stop. Crew: DC 20 Str save or fall off",
        ),
    ),
]


# =============================================================================
# SCALE TABLES
# =============================================================================

# One mile and beyond: environmental, slow to bite
STRATEGIC_COMPLICATIONS: list[Complication] = [
    _entry(
        1, 1, "Wrong Turn",
        "The wasteland all looks the same. You've gone the wrong way.",
        "Make DC 12 Wisdom (Survival) check or lose 1 mile of progress.",
    ),
    _entry(
        2, 2, "Terrain Change",
        "The terrain ahead is impassable. Must find alternate route.",
        "Speed halved for the next round as you navigate around.",
        speed_change=-50,
    ),
    _entry(
        3, 3, "Soul Storm",
        "A storm of souls reduces visibility to near zero.",
        "Lose visual contact with quarry/pursuer for 1d4 rounds.",
    ),
    _entry(
        4, 4, "Wandering War Band",
        "A war band of devils blocks the route.",
        "Must detour or engage. Detour costs 1 round.",
    ),
    _entry(
        5, 5, "Fuel Concerns",
        "Soul coin is running low on power.",
        'Unless soul coin is "fed" with a drop of blood, speed is halved.',
    ),
]

APPROACH_COMPLICATIONS: list[Complication] = [
    *(entry for entry in AVERNUS_COMPLICATIONS if entry.roll_max <= 5),
    _entry(
        6, 6, "Flanking Threat",
        "Another vehicle appears on the horizon, heading to intercept.",
        "A new enemy vehicle may join the chase in 1d4 rounds.",
    ),
]

TACTICAL_COMPLICATIONS: list[Complication] = AVERNUS_COMPLICATIONS

# Under 100 ft: boarding and ramming
POINT_BLANK_COMPLICATIONS: list[Complication] = [
    _entry(
        1, 1, "Boarding Attempt",
        "An enemy leaps toward your vehicle!",
        "Enemy creature attempts to board. Make opposed Athletics check.",
    ),
    _entry(
        2, 2, "Collision Course",
        "Vehicles are on collision course.",
        "Both vehicles must make DC 12 handling check or collide for 4d10 damage each.",
        target_vehicle="both",
        damage="4d10 bludgeoning",
        skill_check=SkillCheck("Dexterity (Vehicle)", 12, "Collide for 4d10 bludgeoning damage"),
    ),
    _entry(
        3, 3, "Weapon Lock",
        "Vehicles are too close for ranged weapons.",
        "Ranged weapons cannot fire until distance increases to 100+ feet.",
    ),
    _entry(
        4, 4, "Grappling Hook",
        "An enemy throws a grappling hook.",
        "Vehicles are tethered. DC 15 Strength check to break free.",
    ),
    _entry(
        5, 5, "Ram Opportunity",
        "Perfect position for a ram attack.",
        "Current driver may immediately attempt a ram as a reaction.",
    ),
]

SCALE_COMPLICATIONS: dict[ScaleName, list[Complication]] = {
    ScaleName.STRATEGIC: STRATEGIC_COMPLICATIONS,
    ScaleName.APPROACH: APPROACH_COMPLICATIONS,
    ScaleName.TACTICAL: TACTICAL_COMPLICATIONS,
    ScaleName.POINT_BLANK: POINT_BLANK_COMPLICATIONS,
}


# =============================================================================
# LOOKUPS
# =============================================================================


def complications_for_scale(scale: Union[ScaleName, str]) -> list[Complication]:
    """The table for a scale; unknown scales use the tactical table."""
    try:
        return SCALE_COMPLICATIONS[ScaleName(scale)]
    except ValueError:
        return TACTICAL_COMPLICATIONS


def avernus_complication(roll: int) -> Optional[Complication]:
    """Avernus table entry for a d20 roll, or None on 11+."""
    for entry in AVERNUS_COMPLICATIONS:
        if entry.roll_min <= roll <= entry.roll_max:
            return entry
    return None


def complication_for_roll(roll: int, scale: Union[ScaleName, str]) -> Optional[Complication]:
    """
    Entry for a d20 roll at a scale.

    11-20 is always no complication. Below that the scale's own table is
    searched first and the Avernus table fills any gap.
    """
    if roll >= NO_COMPLICATION_MIN:
        return None
    roll = max(1, roll)
    for entry in complications_for_scale(scale):
        if entry.roll_min <= roll <= entry.roll_max:
            return entry
    return avernus_complication(roll)


def complication_roll_range(roll: int, scale: Union[ScaleName, str] = ScaleName.TACTICAL) -> str:
    """Display range of the entry a roll lands on, e.g. '1-2', '5' or '11-20'."""
    entry = complication_for_roll(roll, scale)
    if entry is None:
        return f"{NO_COMPLICATION_MIN}-20"
    if entry.roll_min == entry.roll_max:
        return str(entry.roll_min)
    return f"{entry.roll_min}-{entry.roll_max}"
