"""Tests for the command-line interface and CSV export."""

import csv
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from PIL import Image

from orderform.cli import (
    _find_documents,
    _print_summary,
    _write_csv,
    main,
    process_folder,
)
from orderform.ocr.recognizer import RegionResult
from orderform.pipeline import FormExtraction, FormPipeline
from orderform.preprocessing.loader import SourceNotFoundError
from orderform.schemas import LineItem, OrderRecord
from orderform.utils.config import AppConfig
from orderform.validation.rules_engine import RecordValidator


def _make_test_image(path: Path) -> None:
    """Create a minimal test PNG image at the given path."""
    img = Image.fromarray(np.full((100, 200, 3), 255, dtype=np.uint8))
    img.save(path, format="PNG")


def _make_extraction(filename: str = "form.png") -> FormExtraction:
    """Create a FormExtraction for testing."""
    record = OrderRecord(
        invoice_number="CR 12345",
        sold_to="Jane Doe",
        order_date="2024-03-05",
        items=[LineItem(description="Carpet / Rug", unit_price=45.0, amount=45.0)],
    )
    return FormExtraction(
        source_path=Path(filename),
        record=record,
        labeled_text="INVOICE # CR 12345\nSold to: Jane Doe",
        regions={"sold_to": RegionResult("Jane Doe", 91.0)},
        average_confidence=91.0,
        skew_angle=0.0,
    )


class TestFindDocuments:
    """Tests for form image discovery."""

    def test_find_png_files(self, tmp_path: Path) -> None:
        (tmp_path / "form1.png").touch()
        (tmp_path / "form2.png").touch()
        (tmp_path / "readme.txt").touch()
        files = _find_documents(tmp_path)
        assert len(files) == 2
        assert all(f.suffix == ".png" for f in files)

    def test_find_mixed_extensions(self, tmp_path: Path) -> None:
        for name in ("a.png", "b.jpg", "c.jpeg", "d.tiff", "e.bmp", "f.webp"):
            (tmp_path / name).touch()
        (tmp_path / "g.pdf").touch()
        assert len(_find_documents(tmp_path)) == 6

    def test_find_uppercase_extensions(self, tmp_path: Path) -> None:
        (tmp_path / "FORM.JPG").touch()
        assert len(_find_documents(tmp_path)) == 1

    def test_skips_directories(self, tmp_path: Path) -> None:
        (tmp_path / "nested.png").mkdir()
        assert _find_documents(tmp_path) == []


class TestWriteCsv:
    """Tests for CSV writing."""

    def test_write_csv_content(self, tmp_path: Path) -> None:
        rows = [
            {
                "filename": "form.png",
                "status": "success",
                "error": None,
                "sold_to": "Jane Doe",
                "item_amount": 45.0,
            }
        ]
        output = tmp_path / "results.csv"
        _write_csv(rows, output)

        with open(output) as f:
            written = list(csv.DictReader(f))
        assert len(written) == 1
        assert written[0]["sold_to"] == "Jane Doe"
        assert written[0]["item_amount"] == "45.0"
        assert written[0]["invoice_number"] == ""

    def test_column_order(self, tmp_path: Path) -> None:
        output = tmp_path / "results.csv"
        _write_csv([{"filename": "form.png", "status": "success"}], output)

        with open(output) as f:
            headers = next(csv.reader(f))
        assert headers[:2] == ["filename", "status"]
        assert "invoice_number" in headers
        assert "item_unit_price" in headers
        assert "items" not in headers

    def test_write_csv_empty_rows(self, tmp_path: Path) -> None:
        output = tmp_path / "results.csv"
        _write_csv([], output)
        assert not output.exists()

    def test_write_csv_creates_parent_dirs(self, tmp_path: Path) -> None:
        output = tmp_path / "subdir" / "results.csv"
        _write_csv([{"filename": "form.png", "status": "success"}], output)
        assert output.exists()


class TestPrintSummary:
    """Tests for summary printing."""

    def test_print_summary(self, capsys: pytest.CaptureFixture[str]) -> None:
        summary = {"total": 5, "successful": 4, "failed": 1}
        _print_summary(summary, Path("results.csv"))
        captured = capsys.readouterr()
        assert "Total:      5" in captured.out
        assert "Successful: 4" in captured.out
        assert "Failed:     1" in captured.out
        assert "results.csv" in captured.out


class TestProcessFolder:
    """Tests for batch folder processing."""

    def test_process_folder_success(self, tmp_path: Path) -> None:
        pipeline = MagicMock()
        pipeline.process.side_effect = lambda path: _make_extraction(path.name)
        (tmp_path / "form1.png").touch()
        (tmp_path / "form2.jpg").touch()
        output_csv = tmp_path / "out" / "results.csv"

        summary = process_folder(tmp_path, output_csv, pipeline=pipeline)

        assert summary == {"total": 2, "successful": 2, "failed": 0}
        with open(output_csv) as f:
            rows = list(csv.DictReader(f))
        assert [r["filename"] for r in rows] == ["form1.png", "form2.jpg"]
        assert rows[0]["invoice_number"] == "CR 12345"
        assert rows[0]["item_description"] == "Carpet / Rug"
        assert rows[0]["status"] == "success"

    def test_process_folder_with_failure(self, tmp_path: Path) -> None:
        pipeline = MagicMock()
        pipeline.process.side_effect = [
            _make_extraction("a.png"),
            SourceNotFoundError("Unreadable image b.png"),
        ]
        (tmp_path / "a.png").touch()
        (tmp_path / "b.png").touch()
        output_csv = tmp_path / "results.csv"

        summary = process_folder(tmp_path, output_csv, pipeline=pipeline)

        assert summary["successful"] == 1
        assert summary["failed"] == 1
        with open(output_csv) as f:
            rows = list(csv.DictReader(f))
        assert rows[1]["status"] == "failed"
        assert "Unreadable image" in rows[1]["error"]

    def test_process_folder_empty(self, tmp_path: Path) -> None:
        output_csv = tmp_path / "results.csv"
        summary = process_folder(tmp_path, output_csv, pipeline=MagicMock())
        assert summary["total"] == 0
        assert not output_csv.exists()

    def test_process_folder_verbose(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        pipeline = MagicMock()
        pipeline.process.return_value = _make_extraction()
        (tmp_path / "form.png").touch()

        output_csv = tmp_path / "results.csv"
        process_folder(tmp_path, output_csv, verbose=True, pipeline=pipeline)
        assert "Processing [1/1]" in capsys.readouterr().out

    def test_scripted_pipeline_end_to_end(
        self, tmp_path: Path, scripted_engine
    ) -> None:
        _make_test_image(tmp_path / "blank.png")
        (tmp_path / "broken.png").write_bytes(b"not an image")
        pipeline = FormPipeline(
            AppConfig(),
            engine=scripted_engine(),
            validator=RecordValidator(tmp_path / "rules.yaml"),
        )
        output_csv = tmp_path / "results.csv"

        summary = process_folder(tmp_path, output_csv, pipeline=pipeline)

        assert summary == {"total": 2, "successful": 1, "failed": 1}


class TestCLIMain:
    """Tests for the CLI argument parser and main entry point."""

    def test_no_command_shows_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0

    def test_batch_nonexistent_directory(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", "/nonexistent/path"])
        assert exc_info.value.code == 1
        assert "not a directory" in capsys.readouterr().err

    def test_invalid_config_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("ocr:\n  confidence_threshold: 150\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(config_file), "parse", str(config_file)])
        assert exc_info.value.code == 1
        assert "Invalid configuration" in capsys.readouterr().err

    @patch("orderform.cli.FormPipeline")
    def test_extract_nonexistent_file(
        self, mock_pipeline_cls: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        mock_pipeline_cls.return_value.process.side_effect = SourceNotFoundError(
            "Image not found: /nonexistent/file.png"
        )
        with pytest.raises(SystemExit) as exc_info:
            main(["extract", "/nonexistent/file.png"])
        assert exc_info.value.code == 1
        assert "Image not found" in capsys.readouterr().err

    @patch("orderform.cli.FormPipeline")
    def test_extract_writes_json(
        self, mock_pipeline_cls: MagicMock, tmp_path: Path
    ) -> None:
        mock_pipeline_cls.return_value.process.return_value = _make_extraction()
        output = tmp_path / "out" / "form.json"

        main(["extract", str(tmp_path / "form.png"), "-o", str(output)])

        data = json.loads(output.read_text())
        assert data["record"]["invoice_number"] == "CR 12345"
        assert data["record"]["items"][0]["unit_price"] == 45.0
        assert data["regions"]["sold_to"]["confidence"] == 91.0

    @patch("orderform.cli.FormPipeline")
    def test_ocr_prints_labeled_text(
        self,
        mock_pipeline_cls: MagicMock,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        outcome = MagicMock(labeled_text="INVOICE # CR 12345\nSold to: Jane")
        mock_pipeline_cls.return_value.recognize_regions.return_value = outcome

        main(["ocr", str(tmp_path / "form.png")])

        assert "Sold to: Jane" in capsys.readouterr().out

    def test_parse_labeled_text_file(
        self,
        tmp_path: Path,
        labeled_text: str,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "form.txt"
        path.write_text(labeled_text)

        main(["parse", str(path)])

        out = capsys.readouterr().out
        data = json.loads(out[out.index("{") :])
        assert data["invoice_number"] == "CR 12345"
        assert data["items"][0]["amount"] == 675.5

    def test_parse_missing_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["parse", "/nonexistent/form.txt"])
        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().err

    @patch("orderform.cli.process_folder")
    def test_batch_command(self, mock_pf: MagicMock, tmp_path: Path) -> None:
        mock_pf.return_value = {"total": 1, "successful": 1, "failed": 0}
        output = tmp_path / "out.csv"
        main(["batch", str(tmp_path), "-o", str(output), "-v"])
        args = mock_pf.call_args.args
        assert args[0] == tmp_path
        assert args[1] == output
        assert args[3] is True

    @patch("orderform.cli.process_folder")
    def test_config_option(self, mock_pf: MagicMock, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("extraction:\n  lookahead_lines: 2\n")
        mock_pf.return_value = {"total": 0, "successful": 0, "failed": 0}
        main(["-c", str(config_file), "batch", str(tmp_path)])
        config = mock_pf.call_args.args[2]
        assert config.extraction.lookahead_lines == 2
