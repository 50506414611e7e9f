"""
Cookie Product Catalogue

The closed set of cookie products sold by the troop, with display labels and
unit prices. Prices use Decimal, never float.
"""

from decimal import Decimal
from enum import Enum
from typing import Dict, Optional

from .errors import ValidationError


class ProductType(Enum):
    """Cookie product codes with label and unit price (USD)"""
    ADVENTUREFULS = ("Advf", "Adventurefuls", Decimal("6"))
    LEMON_UPS = ("LmUp", "Lemon-Ups", Decimal("6"))
    TREFOILS = ("Tre", "Trefoils", Decimal("6"))
    DO_SI_DOS = ("D-S-D", "Do-Si-Dos", Decimal("6"))
    SAMOAS = ("Sam", "Samoas", Decimal("6"))
    TAGALONGS = ("Tags", "Tagalongs", Decimal("6"))
    THIN_MINTS = ("TMint", "Thin Mints", Decimal("6"))
    EXPLORE_MORES = ("Exp", "Explore Mores", Decimal("6"))
    TOFFEE_TASTIC = ("Toff", "Toffee-tastic", Decimal("7"))
    DONATIONS = ("C4C", "Donations (C4C)", Decimal("6"))

    def __init__(self, code: str, label: str, price: Decimal):
        self.code = code
        self.label = label
        self.price = price

    @classmethod
    def from_code(cls, code: str) -> 'ProductType':
        """Look up a product by its short code"""
        product = _BY_CODE.get(code)
        if product is None:
            raise ValidationError(f"Unknown product code: {code}")
        return product

    @classmethod
    def codes(cls):
        """All product codes in catalogue order"""
        return [p.code for p in cls]


_BY_CODE: Dict[str, ProductType] = {p.code: p for p in ProductType}

# Share of every box sold that the troop keeps; the rest is owed to council
TROOP_PROFIT_PER_BOX = Decimal("1.00")


# Spreadsheet header spellings seen in council exports
PRODUCT_ALIASES: Dict[str, ProductType] = {
    'adventurefuls': ProductType.ADVENTUREFULS,
    'lemon-ups': ProductType.LEMON_UPS,
    'lemonups': ProductType.LEMON_UPS,
    'lemon ups': ProductType.LEMON_UPS,
    'trefoils': ProductType.TREFOILS,
    'do-si-dos': ProductType.DO_SI_DOS,
    'dosidos': ProductType.DO_SI_DOS,
    'do si dos': ProductType.DO_SI_DOS,
    'samoas': ProductType.SAMOAS,
    'caramel delites': ProductType.SAMOAS,
    'tagalongs': ProductType.TAGALONGS,
    'peanut butter patties': ProductType.TAGALONGS,
    'thin mints': ProductType.THIN_MINTS,
    'thinmints': ProductType.THIN_MINTS,
    'thin-mints': ProductType.THIN_MINTS,
    'explore mores': ProductType.EXPLORE_MORES,
    'exploremores': ProductType.EXPLORE_MORES,
    'toffee-tastic': ProductType.TOFFEE_TASTIC,
    'toffeetastic': ProductType.TOFFEE_TASTIC,
    'cookies for a cause': ProductType.DONATIONS,
    'cookies for cause': ProductType.DONATIONS,
    'donation': ProductType.DONATIONS,
    'donations': ProductType.DONATIONS,
    'dsd': ProductType.DO_SI_DOS,
    'tm': ProductType.THIN_MINTS,
}


def match_product_header(header: str) -> Optional[ProductType]:
    """Map a spreadsheet column header to a product, or None if it is not one"""
    normalized = header.strip().lower()
    if normalized in PRODUCT_ALIASES:
        return PRODUCT_ALIASES[normalized]
    for product in ProductType:
        if normalized == product.label.lower() or normalized == product.code.lower():
            return product
    return None
