import pytest

from dirlist.bundle import EmbeddedBundle
from dirlist.errors import BadRequest
from dirlist.negotiation import negotiate
from dirlist.templates import TemplateRegistry

REGISTRY = TemplateRegistry.FromConfig(
    {
        "html": {"content": "<p>{{ dir.name }}</p>"},
        "json": {"content": "{{ dir | tojson }}", "content_type": "application/json"},
        "app": {"content": "app", "disabled": True},
    },
    EmbeddedBundle.Default(),
)


def test_default_type():
    assert negotiate(None, REGISTRY, "html").name == "html"
    assert negotiate({}, REGISTRY, "html").name == "html"
    assert negotiate({"other": "json"}, REGISTRY, "html").name == "html"
    # An empty type is like no type
    assert negotiate({"type": ""}, REGISTRY, "json").name == "json"


def test_requested_type():
    assert negotiate({"type": "json"}, REGISTRY, "html").name == "json"


@pytest.mark.parametrize("name", ["csv", "app", "JSON"])
def test_unsupported_type(name: str):
    with pytest.raises(BadRequest) as e:
        negotiate({"type": name}, REGISTRY, "html")
    assert e.value.status == 400
    assert name in e.value.message


# EOF
