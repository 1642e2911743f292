"""Tests for assemblist.descriptor.reader -- sources, site inclusion, components."""

from __future__ import annotations

import logging
import textwrap
from pathlib import Path

import pytest

from conftest import write_file

from assemblist.descriptor.reader import (
    find_assembly,
    get_assembly_for_ref,
    merge_component,
    read_assemblies,
)
from assemblist.exceptions import DescriptorReadError, InvalidConfigurationError
from assemblist.models import AssemblerConfig, Assembly, Component, FileItem, FileSet


def _descriptor(assembly_id: str, body: str = "") -> str:
    return textwrap.dedent(f"""\
        <assembly>
          <id>{assembly_id}</id>
          <formats><format>zip</format></formats>
          {body}
        </assembly>
    """)


class TestReadAssemblies:
    def test_reads_descriptor_relative_to_basedir(self, config: AssemblerConfig) -> None:
        write_file(config.basedir / "src" / "assembly" / "dist.xml", _descriptor("dist"))
        config = config.model_copy(update={"descriptors": ["src/assembly/dist.xml"]})

        assemblies = read_assemblies(config, environ={})
        assert [a.id for a in assemblies] == ["dist"]
        assert assemblies[0].formats == ["zip"]

    def test_source_priority_order(self, config: AssemblerConfig) -> None:
        write_file(config.basedir / "single.xml", _descriptor("single"))
        write_file(config.basedir / "many.xml", _descriptor("many"))
        write_file(config.basedir / "assemblies" / "nested" / "dir.xml", _descriptor("from-dir"))
        config = config.model_copy(update={
            "descriptor": "single.xml",
            "descriptors": ["many.xml"],
            "descriptor_refs": ["bin"],
            "descriptor_source_directory": config.basedir / "assemblies",
        })

        ids = [a.id for a in read_assemblies(config, environ={})]
        assert ids == ["single", "many", "bin", "from-dir"]

    def test_descriptor_values_are_interpolated(self, config: AssemblerConfig) -> None:
        body = "<baseDirectory>${project.artifactId}-${project.version}</baseDirectory>"
        write_file(config.basedir / "dist.xml", _descriptor("dist", body))
        config = config.model_copy(update={"descriptors": ["dist.xml"]})

        (assembly,) = read_assemblies(config, environ={})
        assert assembly.base_directory == "demo-1.0"

    def test_dependency_set_mapping_is_deferred(self, config: AssemblerConfig) -> None:
        body = textwrap.dedent("""\
            <dependencySets>
              <dependencySet>
                <outputDirectory>lib/${artifact.groupId}</outputDirectory>
                <outputFileNameMapping>${artifact.artifactId}.${artifact.extension}</outputFileNameMapping>
              </dependencySet>
            </dependencySets>
        """)
        write_file(config.basedir / "dist.xml", _descriptor("dist", body))
        config = config.model_copy(update={"descriptors": ["dist.xml"]})

        (assembly,) = read_assemblies(config, environ={})
        dependency_set = assembly.dependency_sets[0]
        assert dependency_set.output_directory == "lib/${artifact.groupId}"
        assert dependency_set.output_file_name_mapping == "${artifact.artifactId}.${artifact.extension}"

    def test_missing_descriptor_raises(self, config: AssemblerConfig) -> None:
        config = config.model_copy(update={"descriptors": ["nope.xml"]})
        with pytest.raises(DescriptorReadError, match="Error locating assembly descriptor"):
            read_assemblies(config, environ={})

    def test_missing_descriptor_ignored(self, config: AssemblerConfig) -> None:
        config = config.model_copy(
            update={"descriptors": ["nope.xml"], "ignore_missing_descriptor": True}
        )
        assert read_assemblies(config, environ={}) == []

    def test_no_descriptors_at_all(self, config: AssemblerConfig) -> None:
        with pytest.raises(DescriptorReadError, match="No assembly descriptors found"):
            read_assemblies(config, environ={})

    def test_unknown_ref(self, config: AssemblerConfig) -> None:
        config = config.model_copy(update={"descriptor_refs": ["nope"]})
        with pytest.raises(DescriptorReadError, match="Unknown descriptor reference"):
            read_assemblies(config, environ={})

    def test_invalid_field_value(self, config: AssemblerConfig) -> None:
        body = "<includeBaseDirectory>perhaps</includeBaseDirectory>"
        write_file(config.basedir / "dist.xml", _descriptor("dist", body))
        config = config.model_copy(update={"descriptors": ["dist.xml"]})
        with pytest.raises(DescriptorReadError, match="Error reading descriptor"):
            read_assemblies(config, environ={})

    def test_duplicate_ids_warn_and_first_wins(
        self, config: AssemblerConfig, caplog: pytest.LogCaptureFixture
    ) -> None:
        write_file(config.basedir / "a.xml", _descriptor("dup", "<baseDirectory>first</baseDirectory>"))
        write_file(config.basedir / "b.xml", _descriptor("dup", "<baseDirectory>second</baseDirectory>"))
        config = config.model_copy(update={"descriptors": ["a.xml", "b.xml"]})

        with caplog.at_level(logging.WARNING):
            assemblies = read_assemblies(config, environ={})
        assert len(assemblies) == 2
        assert "used more than once" in caplog.text
        assert find_assembly(assemblies, "dup").base_directory == "first"
        assert find_assembly(assemblies, "other") is None


class TestSiteDirectory:
    def test_site_file_set_appended(self, config: AssemblerConfig) -> None:
        site = config.basedir / "target" / "site"
        write_file(site / "index.html", "<html/>")
        config = config.model_copy(update={"descriptor_refs": ["src"], "include_site": True})

        (assembly,) = read_assemblies(config, environ={})
        last = assembly.file_sets[-1]
        assert last.directory == str(site)
        assert last.output_directory == "/site"

    def test_missing_site_directory(self, config: AssemblerConfig) -> None:
        config = config.model_copy(update={"descriptor_refs": ["src"], "include_site": True})
        with pytest.raises(InvalidConfigurationError, match="Site directory"):
            read_assemblies(config, environ={})


class TestComponents:
    def test_component_content_appended(self, config: AssemblerConfig) -> None:
        component = textwrap.dedent("""\
            <component>
              <files>
                <file><source>LICENSE</source></file>
              </files>
            </component>
        """)
        write_file(config.basedir / "src" / "assembly" / "license.xml", component)
        body = "<componentDescriptors><componentDescriptor>license.xml</componentDescriptor></componentDescriptors>"
        write_file(config.basedir / "src" / "assembly" / "dist.xml", _descriptor("dist", body))
        config = config.model_copy(update={"descriptors": ["src/assembly/dist.xml"]})

        (assembly,) = read_assemblies(config, environ={})
        assert [f.source for f in assembly.files] == ["LICENSE"]

    def test_missing_component(self, config: AssemblerConfig) -> None:
        body = "<componentDescriptors><componentDescriptor>gone.xml</componentDescriptor></componentDescriptors>"
        write_file(config.basedir / "dist.xml", _descriptor("dist", body))
        config = config.model_copy(update={"descriptors": ["dist.xml"]})
        with pytest.raises(DescriptorReadError, match="Failed to locate component descriptor"):
            read_assemblies(config, environ={})

    def test_merge_appends_without_dedupe(self) -> None:
        assembly = Assembly(id="a", file_sets=[FileSet(directory="docs")])
        component = Component(
            file_sets=[FileSet(directory="docs")], files=[FileItem(source="NOTICE")]
        )
        merge_component(component, assembly)
        merge_component(component, assembly)
        assert [fs.directory for fs in assembly.file_sets] == ["docs", "docs", "docs"]
        assert len(assembly.files) == 2


class TestBuiltinRef:
    def test_bin_descriptor(self, config: AssemblerConfig) -> None:
        assembly = get_assembly_for_ref("bin", config, environ={})
        assert assembly.id == "bin"
        assert assembly.file_sets[0].directory == Path(config.basedir).as_posix()
