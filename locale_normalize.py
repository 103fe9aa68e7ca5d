"""Rename reserved-prefix asset directories so native packagers keep them.

The Android asset packager skips directories whose name starts with an
underscore, which drops Chrome app ``_locales`` folders from the APK. The tree
is moved to ``CCA_locales`` and its locale folders (``en-US``, ``pt-BR``...)
are renamed to the lowercase underscore form (``en_us``, ``pt_br``).
"""
import os
from pathlib import Path
from typing import Callable, Optional, Union

from patch_errors import LocaleNameCollision

RESERVED_PREFIX = "_"
LOCALES_DIR = "_locales"
RENAMED_PREFIX = "CCA"

PathLike = Union[str, Path]


def has_reserved_prefix(name: str) -> bool:
    return name.startswith(RESERVED_PREFIX)


def rename_reserved_name(name: str) -> str:
    # _locales -> CCA_locales
    return f"{RENAMED_PREFIX}{name}"


def adjust_locale_name(name: str) -> str:
    return name.replace("-", "_").lower()


def plan_child_renames(directory: Path, adjust_child: Callable[[str], str]) -> list[tuple[str, str]]:
    """Return ``(old, new)`` names for child directories that need renaming.

    Every target is checked against all existing children and all other
    targets first, so the renames can be applied in any order.
    """
    names = sorted(os.listdir(directory))
    existing = set(names)
    claimed: dict[str, str] = {}
    plan: list[tuple[str, str]] = []

    for name in names:
        adjusted = adjust_child(name)
        if adjusted == name or not (directory / name).is_dir():
            continue
        if adjusted in existing:
            raise LocaleNameCollision(directory / name, directory / adjusted)
        if adjusted in claimed:
            raise LocaleNameCollision(directory / name, directory / claimed[adjusted])
        claimed[adjusted] = name
        plan.append((name, adjusted))

    return plan


def normalize_tree(
    parent: PathLike,
    name: str,
    violates: Callable[[str], bool],
    rename_top: Callable[[str], str],
    adjust_child: Callable[[str], str],
) -> list[tuple[Path, Path]]:
    source = Path(parent) / name
    if not violates(name) or not os.path.exists(source):
        return []

    destination = source.with_name(rename_top(name))
    if os.path.lexists(destination):
        if destination.is_dir() and not any(destination.iterdir()):
            destination.rmdir()
        else:
            raise LocaleNameCollision(source, destination)

    os.rename(source, destination)
    renamed = [(source, destination)]

    if destination.is_dir():
        for old_name, new_name in plan_child_renames(destination, adjust_child):
            old_path = destination / old_name
            new_path = destination / new_name
            os.rename(old_path, new_path)
            renamed.append((old_path, new_path))

    return renamed


def normalize_locales(asset_root: PathLike, platform: Optional[str] = None) -> list[tuple[Path, Path]]:
    if os.path.exists(Path(asset_root) / LOCALES_DIR):
        print(f"## Pre-processing {LOCALES_DIR} for {platform or asset_root}")

    return normalize_tree(
        asset_root,
        LOCALES_DIR,
        violates=has_reserved_prefix,
        rename_top=rename_reserved_name,
        adjust_child=adjust_locale_name,
    )
