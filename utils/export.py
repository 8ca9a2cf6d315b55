"""CSV export of the expense list."""
import csv
import io
from datetime import date
from typing import Iterable, Optional

from models.expense import Expense

CSV_HEADERS = ["Date", "Description", "Amount", "Category"]


def expenses_to_csv(expenses: Iterable[Expense]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for expense in expenses:
        writer.writerow([
            expense.date.strftime("%Y-%m-%d"),
            expense.description,
            expense.amount,
            expense.category,
        ])
    return buffer.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"expenses-{today.isoformat()}.csv"
