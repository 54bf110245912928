from __future__ import annotations

from pathlib import PurePosixPath

from rpmpatch.overlay.paths import PathResolver, identity_path


def test_generic_paths_are_placed_under_sources() -> None:
    resolver = PathResolver()

    assert resolver.resolve("foo.c") == PurePosixPath("SOURCES/foo.c")
    assert resolver.resolve("sub/dir/foo.c") == PurePosixPath("SOURCES/sub/dir/foo.c")


def test_spec_paths_are_kept_unchanged() -> None:
    resolver = PathResolver()

    assert resolver.resolve("SPECS/foo.spec") == PurePosixPath("SPECS/foo.spec")


def test_spec_prefix_must_be_a_whole_component() -> None:
    resolver = PathResolver()

    assert resolver.resolve("SPECSX/notes") == PurePosixPath("SOURCES/SPECSX/notes")


def test_old_and_new_sides_follow_the_same_rule() -> None:
    resolver = PathResolver(specs_dir="specs", sources_dir="src")

    assert resolver.resolve(PurePosixPath("specs/old.spec")) == PurePosixPath("specs/old.spec")
    assert resolver.resolve(PurePosixPath("new.c")) == PurePosixPath("src/new.c")


def test_missing_side_resolves_to_none() -> None:
    resolver = PathResolver()

    assert resolver.resolve(None) is None
    assert identity_path(None) is None
    assert identity_path("SOURCES/x") == PurePosixPath("SOURCES/x")
