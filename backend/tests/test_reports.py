import re
from types import SimpleNamespace

from equipment.ingestion import NormalizedRow, summarize
from equipment.reports import build_upload_report


def make_upload(rows):
    return SimpleNamespace(
        filename="plant.csv",
        record_count=len(rows),
        summary=summarize(rows).as_dict(),
    )


class TestUploadReport:
    """PDF output for a stored upload."""

    def test_small_report(self):
        rows = [NormalizedRow("Pump-1", "Pump", 1.0, None, 3.0)]
        pdf = build_upload_report(make_upload(rows), rows)
        assert pdf.startswith(b"%PDF")

    def test_many_types_and_rows_spill_onto_more_pages(self):
        rows = [NormalizedRow(f"Unit-{i}", f"Type-{i}", float(i)) for i in range(120)]
        pdf = build_upload_report(make_upload(rows), rows, max_rows=120)
        pages = re.findall(rb"/Type\s*/Page\b", pdf)
        assert len(pages) >= 2

    def test_missing_summary(self):
        upload = SimpleNamespace(filename="empty.csv", record_count=0, summary=None)
        assert build_upload_report(upload, []).startswith(b"%PDF")
