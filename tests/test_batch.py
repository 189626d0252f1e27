"""Tests for the batch session."""

from pathlib import Path
from unittest.mock import MagicMock

import pytesseract

from ngid.batch.session import BatchSession, Scope
from ngid.exceptions import ImageLoadError
from ngid.extraction.consensus import extract_ids
from ngid.ocr.image_processor import API_NOT_USED, ImageProcessor, ImageResult
from ngid.utils.config import AppConfig, Engine, PreprocessingConfig


def _result(name: str, lines: list[str], api_status: str = API_NOT_USED) -> ImageResult:
    consensus = extract_ids(lines)
    return ImageResult(
        filename=name,
        lines=lines,
        ids=consensus.sorted_ids(),
        api_status=api_status,
        consensus=consensus,
    )


def _processor(side_effect: list[object]) -> MagicMock:
    processor = MagicMock()
    processor.config = AppConfig()
    processor.process.side_effect = side_effect
    return processor


def _touch(directory: Path, name: str, content: bytes = b"x") -> Path:
    path = directory / name
    path.write_bytes(content)
    return path


class TestAddFiles:
    """Tests for file selection."""

    def test_filters_non_images(self, tmp_path: Path) -> None:
        session = BatchSession(MagicMock())
        added = session.add_files(
            [_touch(tmp_path, "a.png"), _touch(tmp_path, "notes.txt")]
        )
        assert added == 1
        assert [p.name for p in session.files] == ["a.png"]

    def test_extension_case_insensitive(self, tmp_path: Path) -> None:
        session = BatchSession(MagicMock())
        session.add_files([_touch(tmp_path, "SCAN.JPG")])
        assert len(session.files) == 1

    def test_deduplicates_by_name_and_size(self, tmp_path: Path) -> None:
        first = tmp_path / "one"
        second = tmp_path / "two"
        first.mkdir()
        second.mkdir()
        session = BatchSession(MagicMock())
        session.add_files([_touch(first, "a.png", b"xx")])
        added = session.add_files(
            [_touch(second, "a.png", b"yy"), _touch(second, "b.png")]
        )
        assert added == 1
        assert [p.name for p in session.files] == ["a.png", "b.png"]

    def test_same_name_different_size_is_kept(self, tmp_path: Path) -> None:
        first = tmp_path / "one"
        second = tmp_path / "two"
        first.mkdir()
        second.mkdir()
        session = BatchSession(MagicMock())
        session.add_files([_touch(first, "a.png", b"x")])
        assert session.add_files([_touch(second, "a.png", b"longer")]) == 1

    def test_clear(self, tmp_path: Path) -> None:
        session = BatchSession(MagicMock())
        session.add_files([_touch(tmp_path, "a.png")])
        session.last_ids = ["NG0130001"]
        session.api_status = "ok"
        session.clear()
        assert session.files == []
        assert session.last_ids == []
        assert session.api_status == API_NOT_USED


class TestRun:
    """Tests for running a batch."""

    def test_merges_per_image_ids(self, tmp_path: Path) -> None:
        processor = _processor(
            [
                _result("a.png", ["NG0130002"] * 2),
                _result("b.png", ["NG0130001"] * 2, api_status="ok"),
            ]
        )
        session = BatchSession(processor)
        session.add_files([_touch(tmp_path, "a.png"), _touch(tmp_path, "b.png", b"xy")])

        batch = session.run()
        assert batch.unique_ids == ["NG0130001", "NG0130002"]
        assert batch.successful == 2
        assert batch.failed == 0
        assert session.last_ids == batch.unique_ids
        assert session.api_status == "ok"
        assert session.export_text() == "NG0130001\nNG0130002"

    def test_failure_is_recorded(self, tmp_path: Path) -> None:
        processor = _processor(
            [ImageLoadError("broken"), _result("b.png", ["NG0130001"] * 2)]
        )
        session = BatchSession(processor)
        session.add_files([_touch(tmp_path, "a.png"), _touch(tmp_path, "b.png", b"xy")])

        batch = session.run()
        assert batch.failed == 1
        assert batch.results[0].error == "broken"
        assert batch.results[0].ids == []
        assert batch.unique_ids == ["NG0130001"]

    def test_tesseract_failure_does_not_stop_batch(
        self, tmp_path: Path, png_bytes: bytes
    ) -> None:
        config = AppConfig(
            preprocessing=PreprocessingConfig(
                min_size=0,
                strips_enabled=False,
                thresholds=[128],
                inverted_thresholds=[],
            )
        )
        processor = ImageProcessor(config, engine=Engine.TESSERACT)
        processor.tesseract = MagicMock()
        processor.tesseract.read_all_passes.side_effect = [
            pytesseract.TesseractError(1, "bad strip"),
            ["NG0130001", "NG0130001"],
        ]
        session = BatchSession(processor)
        session.add_files(
            [_touch(tmp_path, "a.png", png_bytes), _touch(tmp_path, "b.png", png_bytes)]
        )

        batch = session.run()
        assert batch.failed == 1
        assert batch.results[0].error is not None
        assert "bad strip" in batch.results[0].error
        assert batch.results[1].ids == ["NG0130001"]
        assert batch.unique_ids == ["NG0130001"]

    def test_unexpected_error_is_recorded(self, tmp_path: Path) -> None:
        processor = _processor([RuntimeError("bug"), _result("b.png", ["NG0130001"] * 2)])
        session = BatchSession(processor)
        session.add_files([_touch(tmp_path, "a.png"), _touch(tmp_path, "b.png", b"xy")])

        batch = session.run()
        assert batch.results[0].error == "bug"
        assert batch.successful == 1
        assert processor.process.call_count == 2

    def test_strict_is_passed_through(self, tmp_path: Path) -> None:
        processor = _processor([_result("a.png", [])])
        session = BatchSession(processor)
        session.add_files([_touch(tmp_path, "a.png")])
        session.run(strict=True, use_strips=False)
        args = processor.process.call_args.args
        assert args[2] is True
        assert args[3] is False

    def test_global_scope_pools_lines(self, tmp_path: Path) -> None:
        # Each image alone sees NG0130001 once; pooled it reaches the
        # dominant prefix with two reads.
        processor = _processor(
            [
                _result("a.png", ["NG0130001", "NG0130002"]),
                _result("b.png", ["NG0130001"]),
            ]
        )
        session = BatchSession(processor)
        session.add_files([_touch(tmp_path, "a.png"), _touch(tmp_path, "b.png", b"xy")])

        batch = session.run(scope=Scope.GLOBAL)
        assert all(r.ids == [] for r in batch.results)
        assert batch.unique_ids == ["NG0130001"]
        assert batch.global_consensus is not None
        assert batch.global_consensus.thresholds.dominance_ratio == 0.6

    def test_empty_session(self) -> None:
        session = BatchSession(_processor([]))
        batch = session.run()
        assert batch.results == []
        assert batch.unique_ids == []
