"""Tests for per-request flash messages."""

from app.core.messages import DOCUMENT_DELETED, FlashMessages, get_flash_messages


def test_flash_messages_keep_order_and_level() -> None:
    flash = FlashMessages()

    flash.flash("saved")
    flash.warning("careful")

    assert len(flash) == 2
    assert flash.as_list() == [
        {"level": "info", "message": "saved"},
        {"level": "warning", "message": "careful"},
    ]


def test_dependency_returns_fresh_instance() -> None:
    assert get_flash_messages() is not get_flash_messages()


def test_deleted_message_links_restore_path() -> None:
    assert "/documents/abc/restore" in DOCUMENT_DELETED.format(restore_path="/documents/abc/restore")
