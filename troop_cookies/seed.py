"""
First-run seed data: troop roster with starting inventory and the council
booth sign-up list.
"""

from typing import Dict, List, Tuple

from .members import ScoutLevel
from .products import ProductType


# Column order of the council allocation sheet the roster was copied from
SEED_COLUMNS = (
    ProductType.DONATIONS, ProductType.ADVENTUREFULS, ProductType.LEMON_UPS,
    ProductType.TREFOILS, ProductType.DO_SI_DOS, ProductType.SAMOAS,
    ProductType.TAGALONGS, ProductType.THIN_MINTS, ProductType.EXPLORE_MORES,
    ProductType.TOFFEE_TASTIC,
)

_NONE = (0, 0, 0, 0, 0, 0, 0, 0, 0, 0)

SEED_ROSTER: List[Tuple[str, ScoutLevel, Tuple[int, ...]]] = [
    ("Abigail Newman", ScoutLevel.CADETTE, (19, 50, 15, 12, 14, 79, 45, 88, 41, 11)),
    ("Abigail Orbach", ScoutLevel.JUNIOR, (5, 12, 12, 12, 12, 24, 12, 24, 24, 0)),
    ("Alice Ann Hardy", ScoutLevel.BROWNIE, (0, 12, 12, 12, 12, 12, 12, 12, 12, 0)),
    ("Anna Rodriguez", ScoutLevel.SENIOR, (0, 24, 12, 24, 12, 72, 36, 120, 36, 12)),
    ("Avery Eichenstein", ScoutLevel.JUNIOR, _NONE),
    ("Brooklyn Engelhart", ScoutLevel.JUNIOR, _NONE),
    ("Camila Bermudez", ScoutLevel.JUNIOR, (0, 26, 25, 26, 14, 62, 40, 62, 26, 0)),
    ("Elisa Friedman", ScoutLevel.CADETTE, (10, 13, 14, 16, 15, 35, 17, 60, 11, 0)),
    ("Emma Gelber", ScoutLevel.DAISY, (6, 14, 12, 12, 12, 14, 13, 14, 14, 12)),
    ("Emma Sisk", ScoutLevel.AMBASSADOR, (1, 15, 15, 14, 15, 45, 16, 37, 12, 0)),
    ("Janie Louise Hardy", ScoutLevel.BROWNIE, _NONE),
    ("Lilliana Hart Cain", ScoutLevel.CADETTE, (0, 25, 13, 13, 12, 48, 26, 49, 38, 12)),
    ("Valentina Bermudez", ScoutLevel.JUNIOR, (0, 13, 13, 27, 13, 50, 28, 48, 14, 3)),
    ("Yaretzi Lucena", ScoutLevel.JUNIOR, (0, 0, 0, 0, 0, 2, 8, 12, 3, 1)),
    ("Yoltzin Tlazohtzin Lucena", ScoutLevel.JUNIOR, (0, 0, 0, 0, 0, 12, 0, 12, 0, 0)),
    ("Zara Andrews-Patel", ScoutLevel.JUNIOR, (2, 13, 12, 12, 12, 38, 15, 51, 12, 12)),
    ("Abril Taina Alvarez", ScoutLevel.DAISY, _NONE),
    ("Ava Simlak", ScoutLevel.DAISY, _NONE),
    ("Avia Aframian", ScoutLevel.DAISY, _NONE),
    ("Brixton Hampton", ScoutLevel.DAISY, _NONE),
    ("Camila Alvarez", ScoutLevel.DAISY, _NONE),
    ("Dylan Spector", ScoutLevel.DAISY, _NONE),
    ("Ellie Basharzad", ScoutLevel.DAISY, _NONE),
    ("Ellie LaMotte", ScoutLevel.DAISY, _NONE),
    ("Eva Oberman", ScoutLevel.DAISY, _NONE),
    ("Hanna Nicole Danho", ScoutLevel.DAISY, _NONE),
    ("Hartley Gavigan", ScoutLevel.DAISY, _NONE),
    ("Iva Matea Mustac", ScoutLevel.DAISY, _NONE),
    ("Jolene Danho", ScoutLevel.DAISY, _NONE),
    ("Leila Basharzad", ScoutLevel.DAISY, _NONE),
    ("Maisie Maddux Scarlata", ScoutLevel.DAISY, _NONE),
    ("Myah Aframian", ScoutLevel.DAISY, _NONE),
    ("Paige Scarlata", ScoutLevel.DAISY, _NONE),
    ("Peyton Slater", ScoutLevel.DAISY, _NONE),
    ("Sawyer Scarlata", ScoutLevel.DAISY, _NONE),
    ("Violet Gebelin", ScoutLevel.DAISY, _NONE),
    ("Viviana Zazueta", ScoutLevel.DAISY, _NONE),
    ("Zoe Box", ScoutLevel.DAISY, _NONE),
]


def starting_inventory(counts: Tuple[int, ...]) -> Dict[ProductType, int]:
    return dict(zip(SEED_COLUMNS, counts))


_RALPHS_MAGNOLIA = ("Ralphs (Magnolia SU)", "14440 Burbank Blvd. Sherman Oaks, CA 91401")
_RALPHS_STUDIO_CITY = ("Ralphs (Canyon Star SU)", "12842 Ventura Studio City, CA 91604")
_BOOKSTAR = ("Bookstar (Canyon Star SU)", "12136 Ventura Blvd Studio City, CA 91604")
_MENCHIES = ("Menchies (Canyon Star SU)", "13369 Ventura Blvd Sherman Oaks, CA 91423")
_LOWES_NORTHRIDGE = ("Lowe's (Heart of the Valley)", "19601 Nordoff Street Northridge, CA 91324")

# (id, (business, location), notes, date, start, end, duration)
SEED_BOOTHS = [
    ("b1", ("Lowe's (Woodland Hills SU)", "8383 Topanga Cyn. Blvd. Woodland Hills, CA 91364"),
     "Please check in with manager prior to set up.", "2026-02-06", "3:00pm", "4:30pm", "01:30"),
    ("b2", ("Ralphs (Canyon Star SU)", "10901 Ventura Studio City, CA 91604"),
     "", "2026-02-06", "4:00pm", "6:00pm", "02:00"),
    ("b3", _RALPHS_MAGNOLIA, "", "2026-02-07", "8:00am", "10:00am", "02:00"),
    ("b4", _BOOKSTAR, "", "2026-02-07", "12:00pm", "2:00pm", "02:00"),
    ("b5", _RALPHS_MAGNOLIA, "", "2026-02-07", "2:00pm", "4:00pm", "02:00"),
    ("b6", ("Home Goods (Burbank SU)", "683 N Victory Blvd Burbank, CA 91502"),
     "Pop ups ok when raining", "2026-02-07", "4:00pm", "6:00pm", "02:00"),
    ("b7", _MENCHIES, "", "2026-02-07", "4:00pm", "6:00pm", "02:00"),
    ("b8", ("Amazon Fresh (Twin Oaks SU)", "16325 Ventura Blvd Encino, CA 91346"),
     "ONLY use the main entrance. Please check in with manager.", "2026-02-07", "6:00pm", "8:00pm", "02:00"),
    ("b9", _RALPHS_STUDIO_CITY, "", "2026-02-07", "6:00pm", "8:00pm", "02:00"),
    ("b10", _RALPHS_STUDIO_CITY, "", "2026-02-08", "8:00am", "10:00am", "02:00"),
    ("b11", _BOOKSTAR, "", "2026-02-08", "2:00pm", "4:00pm", "02:00"),
    ("b12", ("Bristol Farms (Woodland Hills SU)", "23379 Mulholland Dr. Woodland Hills, CA 91364"),
     "Please do not block doorway", "2026-02-08", "3:00pm", "5:00pm", "02:00"),
    ("b13", _RALPHS_MAGNOLIA, "", "2026-02-08", "6:00pm", "8:00pm", "02:00"),
    ("b14", ("Ventura Woodley Building (Twin Oaks SU)", "16055 Ventura Blvd Encino, CA 91436"),
     "Juniors and above only. Set up in lobby. Max 2 scouts.", "2026-02-10", "2:00pm", "5:00pm", "03:00"),
    ("b15", ("Ralphs (Canyon Star SU)", "14049 Ventura Blvd Sherman Oaks, CA 91423"),
     "", "2026-02-10", "6:00pm", "8:00pm", "02:00"),
    ("b16", ("Coral Café (Burbank SU)", "3321 Burbank Blvd Burbank, CA 91505"),
     "Front of Restaurant on Burbank. Do not block Door", "2026-02-12", "4:00pm", "6:00pm", "02:00"),
    ("b17", _RALPHS_STUDIO_CITY, "", "2026-02-12", "4:00pm", "6:00pm", "02:00"),
    ("b18", ("Wendy's (Woodland Hills SU)", "22611 Ventura Blvd. Woodland Hills, CA 91364"),
     "Please check in with manager", "2026-02-12", "4:00pm", "6:00pm", "02:00"),
    ("b19", ("House of Secrets (Burbank SU)", "1930 W Olive Ave Burbank, CA 91506"),
     "", "2026-02-13", "3:00pm", "5:00pm", "02:00"),
    ("b20", _MENCHIES, "", "2026-02-13", "4:00pm", "6:00pm", "02:00"),
    ("b21", ("Portos (Burbank SU)", "3614 W Magnolia Blvd Burbank, Ca 91601"),
     "No Pop Ups. Large Umbrellas and Clear Plastic Covers only on Rainy Days",
     "2026-02-15", "10:00am", "12:00pm", "02:00"),
    ("b22", _LOWES_NORTHRIDGE, "Check in with Manager", "2026-02-15", "4:00pm", "6:00pm", "02:00"),
    ("b23", _RALPHS_STUDIO_CITY, "", "2026-02-16", "4:00pm", "6:00pm", "02:00"),
    ("b24", ("Walmart Supercenter (Burbank SU)", "1301 N Victory Pl Burbank, CA 91502"),
     "", "2026-02-20", "2:00pm", "4:00pm", "02:00"),
    ("b25", ("Ralphs (Canyon Star SU)", "12921 Magnolia Blvd Sherman Oaks, CA 91423"),
     "", "2026-02-21", "10:00am", "12:00pm", "02:00"),
    ("b26", _LOWES_NORTHRIDGE, "Check in with Manager", "2026-02-21", "2:00pm", "4:00pm", "02:00"),
    ("b27", _RALPHS_MAGNOLIA, "", "2026-02-22", "10:00am", "12:00pm", "02:00"),
]
