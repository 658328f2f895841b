"""Tests for archive opening, multi-release lookup and metadata."""
import pytest

from bytecode_version_analyzer.archive import (
    Manifest,
    PlainArchive,
    VersionedArchive,
    open_archive,
    read_archive_metadata,
)
from bytecode_version_analyzer.exceptions import (
    ArchiveOpenError,
    CorruptArchiveError,
    NotAFileError,
    PathNotFoundError,
)
from tests.conftest import MULTI_RELEASE_MANIFEST, PLAIN_MANIFEST, class_bytes


def test_open_missing_file(tmp_path):
    with pytest.raises(PathNotFoundError):
        open_archive(str(tmp_path / "missing.jar"))


def test_open_directory(tmp_path):
    with pytest.raises(NotAFileError):
        open_archive(str(tmp_path))


def test_open_corrupt_archive(tmp_path):
    path = tmp_path / "broken.jar"
    path.write_bytes(b"this is not a zip file")

    with pytest.raises(CorruptArchiveError) as excinfo:
        open_archive(str(path))
    assert isinstance(excinfo.value, ArchiveOpenError)
    assert str(path) in str(excinfo.value)


def test_multi_release_jar_opens_versioned(multi_release_jar):
    with open_archive(multi_release_jar) as archive:
        assert isinstance(archive, VersionedArchive)
        assert archive.versioned
        assert archive.manifest.is_multi_release


def test_versioned_lookup_can_be_disabled(multi_release_jar):
    with open_archive(multi_release_jar, versioned=False) as archive:
        assert isinstance(archive, PlainArchive)
        entry = archive.get_entry("com/example/Foo.class")
        assert entry.physical_name == "com/example/Foo.class"


def test_jar_without_multi_release_attribute_is_plain(make_jar):
    path = make_jar(
        [
            ("Foo.class", class_bytes(52)),
            ("META-INF/versions/11/Foo.class", class_bytes(55)),
        ],
        manifest=PLAIN_MANIFEST,
    )
    with open_archive(path) as archive:
        assert isinstance(archive, PlainArchive)

    with open_archive(path, force_multi_release=True) as archive:
        assert isinstance(archive, VersionedArchive)
        assert archive.get_entry("Foo.class").physical_name == "META-INF/versions/11/Foo.class"


def test_effective_and_base_views(multi_release_jar):
    with open_archive(multi_release_jar) as archive:
        effective = archive.get_entry("com/example/Foo.class")
        base = archive.get_base_entry("com/example/Foo.class")

        assert effective.name == "com/example/Foo.class"
        assert effective.physical_name == "META-INF/versions/11/com/example/Foo.class"
        assert effective.is_versioned
        assert base.physical_name == "com/example/Foo.class"
        assert effective.identity != base.identity

        bar = archive.get_entry("com/example/Bar.class")
        assert bar.identity == archive.get_base_entry("com/example/Bar.class").identity


def test_release_limits_versioned_layers(make_jar):
    path = make_jar(
        [
            ("Foo.class", class_bytes(52)),
            ("META-INF/versions/9/Foo.class", class_bytes(53)),
            ("META-INF/versions/17/Foo.class", class_bytes(61)),
        ],
        manifest=MULTI_RELEASE_MANIFEST,
    )

    with open_archive(path) as archive:
        assert archive.get_entry("Foo.class").physical_name == "META-INF/versions/17/Foo.class"
    with open_archive(path, release=11) as archive:
        assert archive.get_entry("Foo.class").physical_name == "META-INF/versions/9/Foo.class"
    with open_archive(path, release=8) as archive:
        assert archive.get_entry("Foo.class").physical_name == "Foo.class"


def test_versions_below_nine_are_ignored(make_jar):
    path = make_jar(
        [
            ("Foo.class", class_bytes(52)),
            ("META-INF/versions/8/Foo.class", class_bytes(50)),
        ],
        manifest=MULTI_RELEASE_MANIFEST,
    )
    with open_archive(path) as archive:
        assert archive.get_entry("Foo.class").physical_name == "Foo.class"


def test_versioned_enumeration_hides_raw_versions_entries(make_jar):
    path = make_jar(
        [
            ("Foo.class", class_bytes(52)),
            ("META-INF/versions/11/Foo.class", class_bytes(55)),
            ("META-INF/versions/11/OnlyNew.class", class_bytes(55)),
        ],
        manifest=MULTI_RELEASE_MANIFEST,
    )
    with open_archive(path) as archive:
        names = [entry.name for entry in archive.entries()]

    assert "META-INF/versions/11/Foo.class" not in names
    assert names.count("Foo.class") == 1
    assert "OnlyNew.class" in names


def test_meta_inf_is_never_overlaid(make_jar):
    path = make_jar(
        [("META-INF/versions/11/META-INF/services/x", b"versioned")],
        manifest=MULTI_RELEASE_MANIFEST,
    )
    with open_archive(path) as archive:
        assert archive.get_entry("META-INF/services/x") is None


def test_manifest_parsing():
    manifest = Manifest.parse(
        "Manifest-Version: 1.0\r\n"
        "Multi-Release: TRUE\r\n"
        "Implementation-Title: a very long\r\n"
        "  title\r\n"
        "\r\n"
        "Name: com/example/Foo.class\r\n"
        "SHA-256-Digest: abc=\r\n"
        "\r\n"
    )
    assert manifest.is_multi_release
    assert not manifest.is_sealed
    assert manifest.get("Implementation-Title") == "a very long title"
    assert manifest.entries["com/example/Foo.class"] == {"SHA-256-Digest": "abc="}
    assert manifest.is_signed


def test_metadata_prefers_pom_properties(make_jar):
    pom_xml = (
        b'<project xmlns="http://maven.apache.org/POM/4.0.0">'
        b"<groupId>org.from.xml</groupId><artifactId>lib</artifactId><version>0.1</version>"
        b"</project>"
    )
    path = make_jar(
        [
            ("META-INF/maven/org.example/lib/pom.xml", pom_xml),
            ("META-INF/maven/org.example/lib/pom.properties",
             b"#generated\ngroupId=org.example\nartifactId=lib\nversion=2.0\n"),
        ],
        manifest="Manifest-Version: 1.0\r\nSealed: true\r\n\r\n",
    )
    with open_archive(path) as archive:
        metadata = read_archive_metadata(archive)

    assert metadata.has_manifest
    assert metadata.sealed
    assert not metadata.multi_release
    assert metadata.coordinates == "org.example:lib:2.0"


def test_metadata_from_pom_xml_with_parent(make_jar):
    pom_xml = (
        b'<project xmlns="http://maven.apache.org/POM/4.0.0">'
        b"<parent><groupId>org.parent</groupId><version>3.1</version></parent>"
        b"<artifactId>child</artifactId>"
        b"</project>"
    )
    path = make_jar([("META-INF/maven/org.parent/child/pom.xml", pom_xml)])
    with open_archive(path) as archive:
        metadata = read_archive_metadata(archive)

    assert not metadata.has_manifest
    assert metadata.coordinates == "org.parent:child:3.1"


def test_metadata_ignores_broken_pom(make_jar):
    path = make_jar([("META-INF/maven/g/a/pom.xml", b"<project><unclosed>")])
    with open_archive(path) as archive:
        assert read_archive_metadata(archive).coordinates is None
