"""Tests for OperationResult, ChipInfo and structured warnings."""

import json

from bouffalo_flasher.core.actions import flash_firmware
from bouffalo_flasher.core.messages import MessageLevel, WarningCode, WarningItem, result_to_warnings
from bouffalo_flasher.core.results import ChipInfo, OperationResult, format_region
from bouffalo_flasher.protocol import BootInfo

from conftest import BOOT_INFO_PAYLOAD


class TestRegion:
    def test_format_region_is_inclusive(self):
        assert format_region(0x2000, 0x6D40) == "0x00002000-0x00008D3F"

    def test_region_empty_without_range(self):
        assert OperationResult.success("reset").region == ""
        assert OperationResult.success("read_log", length=12).region == ""

    def test_region_from_start_and_length(self):
        result = OperationResult.success("read_flash", start_addr=0, length=16)
        assert result.region == "0x00000000-0x0000000F"


class TestOperationResult:
    def test_add_error_fails_result(self):
        result = OperationResult.success("flash_firmware")
        result.add_warning("Verification skipped")
        assert result.ok
        result.add_error("SHA-256 mismatch")
        assert not result.ok
        assert result.errors == ["SHA-256 mismatch"]

    def test_to_dict_dry_run(self):
        result = flash_firmware(None, bytes(100), dry_run=True)

        payload = result.to_dict()

        assert payload["ok"] is True
        assert payload["operation"] == "flash_firmware"
        assert payload["start_addr"] == 0x2000
        assert payload["length"] == 112
        assert payload["region"] == "0x00002000-0x0000206F"
        assert payload["chunks"] == 1
        assert payload["verified"] is None
        assert payload["chip_info"] is None
        assert "Dry run - flash was not modified" in payload["warnings"]
        json.dumps(payload)

    def test_to_dict_reports_data_size_only(self):
        result = OperationResult.success("read_flash", start_addr=0, length=4, data=b"\x01\x02\x03\x04")
        payload = result.to_dict()
        assert payload["data_len"] == 4
        assert "data" not in payload

    def test_to_dict_with_chip_info(self):
        info = ChipInfo(
            boot_info=BootInfo.from_raw(BOOT_INFO_PAYLOAD),
            name="CHIPWB03A00_BL",
            mac=bytes.fromhex("18b905de5a7c0000"),
            jedec_id=b"\xEF\x40\x16",
        )
        result = OperationResult.success("probe_chip", chip="b40ecf35affb", chip_info=info)

        payload = result.to_dict()

        assert payload["chip_info"] == {
            "name": "CHIPWB03A00_BL",
            "chip_id": "b40ecf35affb",
            "boot_rom_version": "1.0.0.0",
            "sign": 0,
            "encrypt": 0,
            "mac": "18b905de5a7c0000",
            "jedec_id": "ef4016",
        }
        json.dumps(payload)

    def test_summary_lists_range_and_verification(self):
        result = OperationResult.success(
            "flash_firmware",
            chip="b40ecf35affb",
            start_addr=0x2000,
            length=32,
            chunks=1,
            sha256="ab" * 32,
            verified=False,
        )
        result.add_error("SHA-256 mismatch")

        summary = result.to_summary()

        assert summary.startswith("[FAILED] flash_firmware")
        assert "Region: 0x00002000-0x0000201F" in summary
        assert "Chunks: 1" in summary
        assert "Verified: NO" in summary
        assert "- SHA-256 mismatch" in summary


class TestWarningItems:
    def test_remediation_filled_in(self):
        item = WarningItem.warn(WarningCode.W_DRY_RUN, "Dry run")
        assert "--dry-run" in item.remediation

    def test_to_dict(self):
        item = WarningItem.error(WarningCode.W_VERIFY_MISMATCH, "SHA-256 mismatch", "detail")
        assert item.to_dict() == {
            "level": MessageLevel.ERROR.value,
            "code": "W_VERIFY_MISMATCH",
            "title": "SHA-256 mismatch",
            "detail": "detail",
            "remediation": item.remediation,
        }

    def test_errors_become_error_items(self):
        result = OperationResult.success("flash_firmware")
        result.add_warning("Firmware padded from 20 to 32 bytes")
        result.add_error("SHA-256 mismatch: device 00, image 11")

        items = result_to_warnings(result)

        assert [(i.level, i.code) for i in items] == [
            (MessageLevel.WARN, WarningCode.W_DATA_PADDED),
            (MessageLevel.ERROR, WarningCode.W_VERIFY_MISMATCH),
        ]
