from __future__ import annotations

import actions
from actions import DesktopActionExecutor


class FakeDesktopServices:
    opened: list[str] = []
    result = True

    @classmethod
    def openUrl(cls, url: str) -> bool:  # noqa: N802
        cls.opened.append(url)
        return cls.result


def _install_fake(monkeypatch, result: bool = True) -> type[FakeDesktopServices]:  # noqa: ANN001
    FakeDesktopServices.opened = []
    FakeDesktopServices.result = result
    monkeypatch.setattr(actions, "QDesktopServices", FakeDesktopServices)
    monkeypatch.setattr(actions, "QUrl", str)
    return FakeDesktopServices


def test_dial_opens_tel_url(monkeypatch) -> None:  # noqa: ANN001
    services = _install_fake(monkeypatch)

    assert DesktopActionExecutor().dial("5551234") is True
    assert services.opened == ["tel:5551234"]


def test_browse_and_launch_app(monkeypatch) -> None:  # noqa: ANN001
    services = _install_fake(monkeypatch)
    executor = DesktopActionExecutor()

    executor.browse("https://www.google.com/search?q=weather")
    executor.launch_app("youtube")
    executor.launch_app("whatsapp")

    assert services.opened == [
        "https://www.google.com/search?q=weather",
        "https://www.youtube.com",
        "whatsapp://",
    ]


def test_unknown_app_fails_silently(monkeypatch) -> None:  # noqa: ANN001
    services = _install_fake(monkeypatch)

    assert DesktopActionExecutor().launch_app("spotify") is False
    assert services.opened == []


def test_unavailable_handler_returns_false(monkeypatch) -> None:  # noqa: ANN001
    _install_fake(monkeypatch, result=False)
    assert DesktopActionExecutor().dial("911") is False


def test_missing_pyside_returns_false(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(actions, "QDesktopServices", None)
    monkeypatch.setattr(actions, "QUrl", None)

    assert DesktopActionExecutor().browse("https://example.com") is False
