import json
import logging
from pathlib import Path

from leptoskit.reload import BrowserMessage, css_link_for


def test_all_message_json():
    assert BrowserMessage.all().to_json() == '{"css":null,"view":null,"all":true}'


def test_all_message_display():
    assert str(BrowserMessage.all()) == "reload all"


def test_css_message():
    message = BrowserMessage.css("pkg/app.css")
    assert str(message) == "reload pkg/app.css"
    decoded = json.loads(message.to_json())
    assert decoded == {"css": "pkg/app.css", "view": None, "all": False}


def test_view_message_round_trip():
    patches = json.dumps([{"path": [0, 1], "action": "ReplaceWith"}])
    message = BrowserMessage.view(patches)
    decoded = json.loads(message.to_json())
    assert decoded["view"] == patches
    assert decoded["css"] is None
    assert decoded["all"] is False
    assert str(message) == "reload all"


def test_empty_css_link_logs_error(caplog):
    with caplog.at_level(logging.ERROR, logger="leptoskit.reload"):
        message = BrowserMessage.css("")
    assert message.css == ""
    assert any("no css file is set" in record.getMessage() for record in caplog.records)


def test_css_link_uses_forward_slashes():
    assert css_link_for(Path("pkg") / "app.css") == "pkg/app.css"
    assert css_link_for("style.css") == "style.css"