"""Financial entries (``financialEntries_c``) and the income/expense summary."""
import logging
from typing import Dict, Union

from .mappers import Entity, Field, NUMBER, REFERENCE, iso_timestamp, parse_float
from .services import FarmScopedService

logger = logging.getLogger(__name__)

FINANCIAL_ENTRY = Entity(
    collection="financialEntries_c",
    label="description",
    singular="financial entry",
    plural="financial entries",
    fields=(
        Field("type", "type_c", default="expense"),
        Field("amount", "amount_c", kind=NUMBER),
        Field("category", "category_c"),
        Field("description", "description_c"),
        Field("date", "date_c", default=iso_timestamp),
        Field("farmId", "farmId_c", kind=REFERENCE),
    ),
)


def _zero_summary() -> Dict[str, Union[int, float]]:
    return {"totalIncome": 0, "totalExpenses": 0, "netBalance": 0}


class FinancialEntryService(FarmScopedService):
    def __init__(self, **kwargs):
        super().__init__(FINANCIAL_ENTRY, **kwargs)

    def get_summary(self) -> Dict[str, Union[int, float]]:
        """
        Totals over every entry: "income" entries count as income, any other
        type as an expense. Returns zeros if anything goes wrong.
        """
        try:
            summary = _zero_summary()
            for entry in self.get_all():
                amount = parse_float(entry.get("amount")) or 0
                if entry.get("type") == "income":
                    summary["totalIncome"] += amount
                else:
                    summary["totalExpenses"] += amount
            summary["netBalance"] = summary["totalIncome"] - summary["totalExpenses"]
            return summary
        except Exception as e:
            logger.exception("Error calculating financial summary: %s", e)
            return _zero_summary()


financial_service = FinancialEntryService()
