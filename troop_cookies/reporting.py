"""
Sales Reporting Module

Dashboard figures over the inventory ledger: per-product box totals,
value of boxes sold, the troop's share and the amount owed to council.
Money is computed with Decimal.
"""

import csv
import io
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from .ledger import InventoryLedger
from .members import MemberDirectory
from .products import TROOP_PROFIT_PER_BOX, ProductType


@dataclass
class ProductTotals:
    """Summed counters for one product"""
    product: ProductType
    starting: int = 0
    additional: int = 0
    sold: int = 0

    @property
    def remaining(self) -> int:
        return self.starting + self.additional - self.sold

    @property
    def sold_value(self) -> Decimal:
        return self.product.price * self.sold

    @property
    def total_value(self) -> Decimal:
        """Value of every box assigned, sold or not"""
        return self.product.price * (self.starting + self.additional)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_code': self.product.code,
            'label': self.product.label,
            'price': str(self.product.price),
            'starting': self.starting,
            'additional': self.additional,
            'sold': self.sold,
            'remaining': self.remaining,
            'sold_value': str(self.sold_value),
        }


@dataclass
class SalesSummary:
    """Troop-wide or single-member dashboard figures"""
    products: List[ProductTotals] = field(default_factory=list)

    @property
    def starting(self) -> int:
        return sum(p.starting for p in self.products)

    @property
    def additional(self) -> int:
        return sum(p.additional for p in self.products)

    @property
    def sold(self) -> int:
        return sum(p.sold for p in self.products)

    @property
    def remaining(self) -> int:
        return sum(p.remaining for p in self.products)

    @property
    def sold_value(self) -> Decimal:
        return sum((p.sold_value for p in self.products), Decimal("0"))

    @property
    def total_value(self) -> Decimal:
        return sum((p.total_value for p in self.products), Decimal("0"))

    @property
    def troop_profit(self) -> Decimal:
        return TROOP_PROFIT_PER_BOX * self.sold

    @property
    def owed_to_council(self) -> Decimal:
        return self.sold_value - self.troop_profit

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_boxes': self.starting + self.additional,
            'starting': self.starting,
            'additional': self.additional,
            'sold': self.sold,
            'remaining': self.remaining,
            'total_value': str(self.total_value),
            'sold_value': str(self.sold_value),
            'troop_profit': str(self.troop_profit),
            'owed_to_council': str(self.owed_to_council),
            'products': [p.to_dict() for p in self.products],
        }


class SalesReporter:
    """Builds sales summaries from the ledger"""

    def __init__(self, directory: MemberDirectory, ledger: InventoryLedger):
        self.directory = directory
        self.ledger = ledger

    def product_breakdown(self, member_ids: Optional[Iterable[str]] = None) -> SalesSummary:
        """Totals per product over the given members (all non-admin members by default)"""
        if member_ids is None:
            member_ids = [m.id for m in self.directory.list_members(include_admins=False)]
        wanted = set(member_ids)

        totals = {product: ProductTotals(product) for product in ProductType}
        for record in self.ledger.all_records():
            if record.member_id not in wanted:
                continue
            entry = totals[ProductType.from_code(record.product_code)]
            entry.starting += record.starting
            entry.additional += record.additional
            entry.sold += record.sold
        return SalesSummary(products=[totals[p] for p in ProductType])

    def troop_summary(self) -> SalesSummary:
        return self.product_breakdown()

    def member_summary(self, member_id: str) -> SalesSummary:
        self.directory.resolve_member(member_id)
        return self.product_breakdown([member_id])

    def member_leaderboard(self) -> List[Dict[str, Any]]:
        """Per-member sold and remaining, best sellers first"""
        rows = []
        for member in self.directory.list_members(include_admins=False):
            summary = self.product_breakdown([member.id])
            rows.append({
                'member_id': member.id,
                'name': member.name,
                'level': member.level.value,
                'sold': summary.sold,
                'remaining': summary.remaining,
                'sold_value': str(summary.sold_value),
            })
        rows.sort(key=lambda r: (-r['sold'], r['name']))
        return rows

    def export_csv(self, summary: SalesSummary) -> str:
        """Product breakdown as CSV"""
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(['Product', 'Price', 'Starting', 'Additional', 'Sold', 'Remaining', 'Sold Value'])
        for p in summary.products:
            writer.writerow([p.product.label, str(p.product.price), p.starting, p.additional,
                             p.sold, p.remaining, str(p.sold_value)])
        writer.writerow(['Total', '', summary.starting, summary.additional,
                         summary.sold, summary.remaining, str(summary.sold_value)])
        return output.getvalue()
