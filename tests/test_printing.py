"""Tests for the lp print wrapper, using coreutils stand-ins for lp."""

import asyncio
import shutil

import pytest

from kioskbooth.services.printing import PrintService

TRUE = shutil.which("true")
FALSE = shutil.which("false")


def test_enabled_needs_a_printer_and_lp() -> None:
    assert PrintService(printer_name="", lp_path="/usr/bin/lp").enabled is False
    assert PrintService(printer_name="Booth", lp_path="/usr/bin/lp").enabled is True


def test_copies_is_at_least_one() -> None:
    assert PrintService(copies=0, lp_path="/usr/bin/lp").copies == 1


@pytest.mark.skipif(TRUE is None, reason="true not available")
def test_successful_print(tmp_path) -> None:
    path = tmp_path / "frame.jpg"
    path.write_bytes(b"jpeg")

    assert asyncio.run(PrintService(printer_name="Booth", lp_path=TRUE).print_file(str(path))) is True


@pytest.mark.skipif(FALSE is None, reason="false not available")
def test_failed_print_returns_false(tmp_path) -> None:
    assert asyncio.run(PrintService(printer_name="Booth", lp_path=FALSE).print_file(str(tmp_path / "x.jpg"))) is False


def test_missing_binary_returns_false(tmp_path) -> None:
    service = PrintService(printer_name="Booth", lp_path=str(tmp_path / "no-such-lp"))

    assert asyncio.run(service.print_file("frame.jpg")) is False
