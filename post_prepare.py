#!/usr/bin/env python3
import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Callable, NamedTuple, Optional, Sequence, Union

from csp_inject import inject_bootstrap_csp
from locale_normalize import normalize_locales
from manifest_merge import create_csp_string, get_merged_manifest
from patch_errors import MissingPlatformsDirectory
from platform_xml_patch import patch_android_platform

PLATFORMS_DIR = "platforms"
PLATFORM_ORDER = ("android", "ios")
ASSET_DIRS = {
    "android": ("platforms", "android", "assets", "www"),
    "ios": ("platforms", "ios", "www"),
}
DEFAULT_WWW_DIR = "www"
DEFAULT_CONFIG = "cca-post-prepare.json"
MERGED_MANIFEST = "manifest.json"

STATE_NOT_STARTED = "NotStarted"
STATE_LOCALE_NORMALIZED = "LocaleNormalized"
STATE_MANIFEST_MERGED = "ManifestMerged"
STATE_MANIFEST_WRITTEN = "ManifestWritten"
STATE_CSP_INJECTED = "CspInjected"
STATE_XML_PATCHED = "XmlPatched"
STATE_DONE = "Done"
STATE_FAILED = "Failed"

ManifestMerger = Callable[[Path, str], Any]
CspComputer = Callable[[Any, str], str]
Stage = tuple[str, Callable[[Any], Any]]


class PipelineResult(NamedTuple):
    platform: str
    state: str
    completed: str
    value: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RunResult(NamedTuple):
    pipelines: tuple[PipelineResult, ...]
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def platforms(self) -> list[str]:
        return [result.platform for result in self.pipelines]


def asset_dir_for_platform(project_root: Union[str, Path], platform: str) -> Path:
    return Path(project_root).joinpath(*ASSET_DIRS[platform])


def detect_platforms(project_root: Union[str, Path]) -> list[str]:
    platforms_dir = Path(project_root) / PLATFORMS_DIR
    if not platforms_dir.is_dir():
        raise MissingPlatformsDirectory(project_root)
    return [platform for platform in PLATFORM_ORDER if (platforms_dir / platform).is_dir()]


def write_merged_manifest(asset_root: Path, manifest: Any) -> Path:
    manifest_path = asset_root / MERGED_MANIFEST
    content = json.dumps(manifest, indent=4, ensure_ascii=False)
    with open(manifest_path, "w", encoding="utf-8") as f:
        f.write(content)
    return manifest_path


def run_stages(platform: str, stages: Sequence[Stage], seed: Any = None) -> PipelineResult:
    """Run stages in order, feeding each one the previous stage's value.

    The first failing stage stops the pipeline; work done by earlier stages is
    kept as is.
    """
    completed = STATE_NOT_STARTED
    value = seed
    for state, stage in stages:
        try:
            value = stage(value)
        except Exception as error:
            print(f"[post-prepare] {platform} failed after {completed}: {error}", file=sys.stderr)
            return PipelineResult(platform, STATE_FAILED, completed, None, error)
        completed = state
    return PipelineResult(platform, STATE_DONE, completed, value)


def build_platform_stages(
    project_root: Path,
    platform: str,
    www_dir: Path,
    merger: ManifestMerger,
    csp_computer: CspComputer,
) -> list[Stage]:
    asset_root = asset_dir_for_platform(project_root, platform)

    def merge(_):
        print(f"[post-prepare] {platform} merging manifest from {www_dir}")
        return merger(www_dir, platform)

    def write(manifest):
        manifest_path = write_merged_manifest(asset_root, manifest)
        print(f"[post-prepare] {platform} wrote {manifest_path}")
        return manifest

    def inject(manifest):
        inject_bootstrap_csp(asset_root, csp_computer(manifest, platform))
        return manifest

    def patch_xml(manifest):
        patch_android_platform(Path(project_root) / PLATFORMS_DIR / "android", manifest)
        return manifest

    stages: list[Stage] = [
        (STATE_LOCALE_NORMALIZED, lambda _: normalize_locales(asset_root, platform)),
        (STATE_MANIFEST_MERGED, merge),
        (STATE_MANIFEST_WRITTEN, write),
        (STATE_CSP_INJECTED, inject),
    ]
    if platform == "android":
        stages.append((STATE_XML_PATCHED, patch_xml))
    return stages


def run_post_prepare(
    project_root: Union[str, Path] = ".",
    www_dir: Union[str, Path] = DEFAULT_WWW_DIR,
    merger: ManifestMerger = get_merged_manifest,
    csp_computer: CspComputer = create_csp_string,
) -> RunResult:
    project_root = Path(project_root)
    try:
        platforms = detect_platforms(project_root)
    except MissingPlatformsDirectory as error:
        return RunResult((), error)

    www_dir = project_root / www_dir
    pipelines: list[PipelineResult] = []
    for platform in platforms:
        stages = build_platform_stages(project_root, platform, www_dir, merger, csp_computer)
        result = run_stages(platform, stages)
        pipelines.append(result)
        if not result.ok:
            return RunResult(tuple(pipelines), result.error)
        print(f"[post-prepare] {platform} done")

    return RunResult(tuple(pipelines))


def load_config(config_path):
    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            return json.load(f)
    return {}


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Patch staged Android/iOS platform trees after prepare: locales, manifest.json, CSP and Android XML"
    )
    parser.add_argument("--project-root", default=None, help="Project root containing platforms/ (default: current directory)")
    parser.add_argument("--www", default=None, help=f"Web asset root, relative to the project root (default: {DEFAULT_WWW_DIR})")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Path to config file, relative to the project root")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    project_root = Path(args.project_root or ".")
    config = load_config(project_root / args.config)
    if not args.project_root and config.get("project_root"):
        project_root = project_root / config["project_root"]
    www_dir = args.www or config.get("www", DEFAULT_WWW_DIR)

    result = run_post_prepare(project_root, www_dir)
    if not result.ok:
        print(f"FATAL ERROR in post_prepare: {result.error}", file=sys.stderr)
        return 1

    print(f"Done! Patched platforms: {', '.join(result.platforms) or 'none'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
