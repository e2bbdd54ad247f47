"""
Infernal war machine templates.

Stat lines for the standard war machines: speed, damage and mishap
thresholds, crew stations with their cover and sight lines, and mounted
weapons.
"""

from infernal_chase.data_models import (
    AttackArc,
    CoverType,
    VehicleTemplate,
    VehicleZone,
    WeaponTemplate,
)

ALL_ARCS = [AttackArc.FRONT, AttackArc.RIGHT, AttackArc.REAR, AttackArc.LEFT]


def _harpoon(weapon_id: str, zone_id: str, damage: str, attack_bonus: int) -> WeaponTemplate:
    return WeaponTemplate(
        id=weapon_id,
        name="Harpoon Flinger",
        damage=damage,
        attack_bonus=attack_bonus,
        range="120 ft",
        zone_id=zone_id,
    )


DEVILS_RIDE = VehicleTemplate(
    id="devils_ride",
    name="Devil's Ride",
    max_hp=30,
    ac=23,
    speed=120,
    damage_threshold=5,
    mishap_threshold=10,
    zones=[
        VehicleZone(id="helm", name="Helm", cover=CoverType.HALF, visible_from_arcs=list(ALL_ARCS)),
    ],
    weapons=[],
)

BUZZ_KILLER = VehicleTemplate(
    id="buzz_killer",
    name="Buzz Killer",
    max_hp=50,
    ac=22,
    speed=110,
    damage_threshold=8,
    mishap_threshold=15,
    zones=[
        VehicleZone(
            id="helm",
            name="Helm",
            cover=CoverType.THREE_QUARTERS,
            visible_from_arcs=[AttackArc.FRONT],
        ),
        VehicleZone(
            id="passenger",
            name="Passenger Seat",
            cover=CoverType.HALF,
            visible_from_arcs=list(ALL_ARCS),
        ),
    ],
    weapons=[
        WeaponTemplate(
            id="buzz_saw_main",
            name="Buzz Saw",
            damage="4d8 slashing",
            range="melee (5 ft)",
        ),
    ],
)

TORMENTOR = VehicleTemplate(
    id="tormentor",
    name="Tormentor",
    max_hp=100,
    ac=21,
    speed=100,
    damage_threshold=10,
    mishap_threshold=20,
    zones=[
        VehicleZone(
            id="helm",
            name="Helm",
            cover=CoverType.THREE_QUARTERS,
            visible_from_arcs=[AttackArc.FRONT],
        ),
        VehicleZone(
            id="harpoon_station",
            name="Harpoon Flinger",
            cover=CoverType.HALF,
            visible_from_arcs=[AttackArc.FRONT, AttackArc.LEFT, AttackArc.RIGHT],
        ),
        VehicleZone(
            id="passenger_area",
            name="Passenger Area",
            cover=CoverType.HALF,
            capacity=2,
            visible_from_arcs=list(ALL_ARCS),
        ),
    ],
    weapons=[_harpoon("harpoon_main", "harpoon_station", "2d8+1 piercing", 6)],
)

DEMON_GRINDER = VehicleTemplate(
    id="demon_grinder",
    name="Demon Grinder",
    max_hp=200,
    ac=19,
    speed=100,
    damage_threshold=10,
    mishap_threshold=20,
    zones=[
        VehicleZone(
            id="helm",
            name="Helm",
            cover=CoverType.THREE_QUARTERS,
            visible_from_arcs=[AttackArc.FRONT],
        ),
        VehicleZone(
            id="chomper_station",
            name="Chomper Station",
            cover=CoverType.HALF,
            visible_from_arcs=[AttackArc.FRONT],
        ),
        VehicleZone(
            id="wrecking_ball_station",
            name="Wrecking Ball Station",
            cover=CoverType.HALF,
            visible_from_arcs=[AttackArc.LEFT, AttackArc.RIGHT, AttackArc.REAR],
        ),
        VehicleZone(
            id="harpoon_station_port",
            name="Port Weapon Station",
            cover=CoverType.HALF,
            visible_from_arcs=[AttackArc.FRONT, AttackArc.LEFT],
        ),
        VehicleZone(
            id="harpoon_station_starboard",
            name="Starboard Weapon Station",
            cover=CoverType.HALF,
            visible_from_arcs=[AttackArc.FRONT, AttackArc.RIGHT],
        ),
        VehicleZone(
            id="passenger_area",
            name="Passenger Area",
            cover=CoverType.THREE_QUARTERS,
            capacity=3,
            visible_from_arcs=list(ALL_ARCS),
        ),
    ],
    weapons=[
        WeaponTemplate(
            id="chomper_main",
            name="Chomper",
            damage="6d6+4 piercing",
            attack_bonus=9,
            range="melee (5 ft)",
            zone_id="chomper_station",
        ),
        WeaponTemplate(
            id="wrecking_ball_main",
            name="Wrecking Ball",
            damage="3d8+2 bludgeoning",
            range="melee (15 ft)",
            zone_id="wrecking_ball_station",
        ),
        _harpoon("harpoon_port", "harpoon_station_port", "2d8+2 piercing", 7),
        _harpoon("harpoon_starboard", "harpoon_station_starboard", "2d8+2 piercing", 7),
    ],
)

VEHICLE_TEMPLATES: dict[str, VehicleTemplate] = {
    template.id: template
    for template in (DEVILS_RIDE, BUZZ_KILLER, TORMENTOR, DEMON_GRINDER)
}


def get_template(template_id: str) -> VehicleTemplate:
    """
    Raises:
        KeyError: If the template id is unknown
    """
    return VEHICLE_TEMPLATES[template_id]
