from __future__ import annotations

from openpyxl import load_workbook

from pst.domain.errors import ValidationError
import logging

log = logging.getLogger("pst.stock")


class ExcelService:
    def __init__(self, stock_service):
        self.stock = stock_service

    def import_stock_excel(self, path: str) -> tuple[int, int]:
        """
        Each row is a stock intake.
        Headers:
          name | quantity | cost_price [| sale_price | vendor | purchase_date]
        """
        wb = load_workbook(path)
        ws = wb.active

        headers = {}
        for col in range(1, ws.max_column + 1):
            v = ws.cell(row=1, column=col).value
            if isinstance(v, str):
                headers[v.strip().lower()] = col

        required = ["name", "quantity", "cost_price"]
        for r in required:
            if r not in headers:
                raise ValidationError(f"Missing column header: {r}")

        def cell(row: int, header: str):
            col = headers.get(header)
            return ws.cell(row=row, column=col).value if col else None

        ok = 0
        skipped = 0

        for row in range(2, ws.max_row + 1):
            name = cell(row, "name")
            quantity = cell(row, "quantity")
            cost = cell(row, "cost_price")
            if not name or quantity is None or cost is None:
                skipped += 1
                continue

            try:
                self.stock.add_stock(
                    name=str(name),
                    quantity=quantity,
                    cost_price=cost,
                    sale_price=cell(row, "sale_price") or 0,
                    vendor=cell(row, "vendor"),
                    purchase_date=cell(row, "purchase_date"),
                )
            except ValidationError as e:
                log.warning("excel_import_row_skipped row=%s error=%s", row, e)
                skipped += 1
                continue
            ok += 1

        log.info("excel_import_done path=%s imported=%s skipped=%s", path, ok, skipped)
        return ok, skipped
