"""Tests for the container descriptor handlers and their registry."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from unittest.mock import MagicMock, patch

import pytest

from assemblist.exceptions import (
    ArchiveCreationError,
    InvalidConfigurationError,
    PluginError,
)
from assemblist.handlers import (
    COMPONENTS_XML_PATH,
    ComponentsXmlHandler,
    FileAggregatorHandler,
    HandlerRegistry,
    ServicesHandler,
)
from assemblist.handlers.base import ContainerDescriptorHandler
from assemblist.models import ContainerDescriptorHandlerConfig, GlobalConfig, HandlersConfig


def _components(*pairs: tuple[str, str, str]) -> bytes:
    body = "".join(
        f"<component><role>{role}</role><role-hint>{hint}</role-hint>"
        f"<implementation>{impl}</implementation></component>"
        for role, hint, impl in pairs
    )
    return f"<component-set><components>{body}</components></component-set>".encode()


class _StubHandler(ContainerDescriptorHandler):
    @property
    def name(self) -> str:
        return "stub"

    def claims(self, path: str) -> bool:
        return False

    def accept(self, path: str, data: bytes) -> bool:
        return False

    def finalize(self) -> list[tuple[str, bytes]]:
        return []


# ---------------------------------------------------------------------------
# Plexus components.xml
# ---------------------------------------------------------------------------


class TestComponentsXmlHandler:
    def test_claims_only_components_xml(self) -> None:
        handler = ComponentsXmlHandler()
        assert handler.claims(COMPONENTS_XML_PATH)
        assert handler.claims("/" + COMPONENTS_XML_PATH)
        assert not handler.claims("META-INF/plexus/other.xml")

    def test_merges_into_single_entry(self) -> None:
        handler = ComponentsXmlHandler()
        handler.accept(COMPONENTS_XML_PATH, _components(("A", "default", "a.Impl")))
        handler.accept(COMPONENTS_XML_PATH, _components(("B", "default", "b.Impl")))

        entries = handler.finalize()
        assert len(entries) == 1
        path, data = entries[0]
        assert path == COMPONENTS_XML_PATH
        root = ET.fromstring(data)
        assert root.tag == "component-set"
        assert [c.findtext("role") for c in root.iter("component")] == ["A", "B"]

    def test_first_declaration_wins(self) -> None:
        handler = ComponentsXmlHandler()
        handler.accept(COMPONENTS_XML_PATH, _components(("A", "x", "first.Impl")))
        handler.accept(COMPONENTS_XML_PATH, _components(("A", "x", "second.Impl")))

        (_, data) = handler.finalize()[0]
        impls = [c.findtext("implementation") for c in ET.fromstring(data).iter("component")]
        assert impls == ["first.Impl"]

    def test_no_components_no_output(self) -> None:
        assert ComponentsXmlHandler().finalize() == []

    def test_malformed_document(self) -> None:
        with pytest.raises(ArchiveCreationError, match=COMPONENTS_XML_PATH):
            ComponentsXmlHandler().accept(COMPONENTS_XML_PATH, b"<component-set>")

    def test_reset_clears_state(self) -> None:
        handler = ComponentsXmlHandler()
        handler.accept(COMPONENTS_XML_PATH, _components(("A", "", "a.Impl")))
        handler.reset()
        assert handler.finalize() == []

    def test_rejects_options(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            ComponentsXmlHandler().configure({"unexpected": "1"})


# ---------------------------------------------------------------------------
# META-INF/services
# ---------------------------------------------------------------------------


class TestServicesHandler:
    def test_merges_providers_per_service(self) -> None:
        handler = ServicesHandler()
        service = "META-INF/services/org.example.Codec"
        handler.accept(service, b"# header\na.Codec\nb.Codec # trailing\n")
        handler.accept(service, b"b.Codec\nc.Codec")
        handler.accept("META-INF/services/org.example.Other", b"x.Other\n")

        result = dict(handler.finalize())
        assert result[service] == b"a.Codec\nb.Codec\nc.Codec\n"
        assert result["META-INF/services/org.example.Other"] == b"x.Other\n"

    def test_claims(self) -> None:
        handler = ServicesHandler()
        assert handler.claims("META-INF/services/org.example.Codec")
        assert not handler.claims("META-INF/services/")
        assert not handler.claims("META-INF/MANIFEST.MF")

    def test_undecodable_file(self) -> None:
        handler = ServicesHandler()
        service = "META-INF/services/org.example.Codec"
        with pytest.raises(ArchiveCreationError, match=service):
            handler.accept(service, b"caf\xe9.Impl\n")
        assert handler.finalize() == []


# ---------------------------------------------------------------------------
# File aggregator
# ---------------------------------------------------------------------------


class TestFileAggregatorHandler:
    def _handler(self) -> FileAggregatorHandler:
        handler = FileAggregatorHandler()
        handler.configure({"file_pattern": r"(.*/)?NOTICE(\.txt)?", "output_path": "/NOTICE"})
        return handler

    def test_joins_matching_entries(self) -> None:
        handler = self._handler()
        assert handler.claims("NOTICE")
        assert handler.claims("lib/a/NOTICE.txt")
        assert not handler.claims("NOTICES")

        handler.accept("NOTICE", b"first")
        handler.accept("lib/a/NOTICE.txt", b"second\n")
        assert handler.finalize() == [("NOTICE", b"first\n\nsecond\n")]

    def test_requires_options(self) -> None:
        with pytest.raises(InvalidConfigurationError, match="filePattern"):
            FileAggregatorHandler().configure({"output_path": "NOTICE"})

    def test_invalid_pattern(self) -> None:
        with pytest.raises(InvalidConfigurationError, match="Invalid filePattern"):
            FileAggregatorHandler().configure({"file_pattern": "(", "output_path": "NOTICE"})


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestHandlerRegistry:
    def test_builtin_hints(self) -> None:
        assert HandlerRegistry().hints() == ["file-aggregator", "metaInf-services", "plexus"]

    def test_default_handler_appended(self) -> None:
        handlers = HandlerRegistry().select([])
        assert [h.name for h in handlers] == ["plexus"]

    def test_plexus_not_duplicated(self) -> None:
        configs = [
            ContainerDescriptorHandlerConfig(handler_name="metaInf-services"),
            ContainerDescriptorHandlerConfig(handler_name="plexus"),
        ]
        handlers = HandlerRegistry().select(configs)
        assert [h.name for h in handlers] == ["metaInf-services", "plexus"]

    def test_select_returns_fresh_instances(self) -> None:
        registry = HandlerRegistry()
        assert registry.select([])[0] is not registry.select([])[0]

    def test_select_configures_handler(self) -> None:
        config = ContainerDescriptorHandlerConfig(
            handler_name="file-aggregator",
            configuration={"file_pattern": "NOTICE", "output_path": "NOTICE"},
        )
        handler = HandlerRegistry().select([config])[0]
        assert handler.claims("NOTICE")

    def test_unknown_hint(self) -> None:
        config = ContainerDescriptorHandlerConfig(handler_name="nope")
        with pytest.raises(InvalidConfigurationError, match="hint: nope"):
            HandlerRegistry().select([config])

    def test_duplicate_registration(self) -> None:
        with pytest.raises(PluginError, match="already registered"):
            HandlerRegistry().register("plexus", ComponentsXmlHandler)

    def test_register_custom(self) -> None:
        registry = HandlerRegistry()
        registry.register("stub", _StubHandler)
        assert isinstance(registry.create("stub"), _StubHandler)


class TestHandlerDiscovery:
    def _entry_point(self, name: str, factory=None, error: Exception | None = None) -> MagicMock:
        ep = MagicMock()
        ep.name = name
        if error is not None:
            ep.load.side_effect = error
        else:
            ep.load.return_value = factory or _StubHandler
        return ep

    def _patched(self, eps: list[MagicMock]):
        mock_eps = MagicMock()
        mock_eps.select.return_value = eps
        return patch(
            "assemblist.handlers.registry.importlib.metadata.entry_points",
            return_value=mock_eps,
        )

    def test_discovers_entry_points(self) -> None:
        registry = HandlerRegistry()
        with self._patched([self._entry_point("stub")]):
            assert registry.discover() == ["stub"]
        assert "stub" in registry.hints()

    def test_disabled_handlers_skipped(self) -> None:
        config = GlobalConfig(handlers=HandlersConfig(disabled=["stub"]))
        with self._patched([self._entry_point("stub")]):
            assert HandlerRegistry().discover(config) == []

    def test_enabled_list_is_allowlist(self) -> None:
        config = GlobalConfig(handlers=HandlersConfig(enabled=["other"]))
        with self._patched([self._entry_point("stub"), self._entry_point("other")]):
            assert HandlerRegistry().discover(config) == ["other"]

    def test_load_failure_is_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING), self._patched(
            [self._entry_point("broken", error=ImportError("missing"))]
        ):
            assert HandlerRegistry().discover() == []
        assert "Failed to load container descriptor handler 'broken'" in caplog.text
