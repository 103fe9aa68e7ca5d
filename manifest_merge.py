import json
from pathlib import Path
from typing import Any, Union

from patch_errors import ManifestMergeError

BASE_MANIFEST = "manifest.json"
MOBILE_MANIFEST = "manifest.mobile.json"

DEFAULT_CSP_DIRECTIVES = [
    ("default-src", ["'self'", "data:", "blob:", "filesystem:", "chrome-extension-resource:"]),
    ("connect-src", ["*"]),
    ("style-src", ["'self'", "data:", "chrome-extension-resource:", "'unsafe-inline'"]),
    ("img-src", ["'self'", "data:", "blob:", "filesystem:", "chrome-extension-resource:"]),
    ("frame-src", ["'self'", "data:", "blob:", "filesystem:", "chrome-extension-resource:"]),
    ("font-src", ["'self'", "data:", "chrome-extension-resource:"]),
    ("media-src", ["*"]),
]

# Schemes the native bridge needs on each platform.
PLATFORM_CSP_SOURCES = {
    "android": [],
    "ios": ["gap:"],
}


def load_manifest_fragment(path: Path, required: bool = False) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ManifestMergeError(f"Manifest not found: {path}")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as error:
        raise ManifestMergeError(f"Invalid JSON in {path}: {error}") from error

    if not isinstance(data, dict):
        raise ManifestMergeError(f"Manifest fragment is not a JSON object: {path}")
    return data


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def get_merged_manifest(www_dir: Union[str, Path], platform: str) -> dict[str, Any]:
    """Merge manifest.json, manifest.mobile.json and manifest.<platform>.json.

    Later fragments win; nested objects are merged key by key.
    """
    www = Path(www_dir)
    manifest = load_manifest_fragment(www / BASE_MANIFEST, required=True)
    for fragment_name in (MOBILE_MANIFEST, f"manifest.{platform}.json"):
        manifest = deep_merge(manifest, load_manifest_fragment(www / fragment_name))
    return manifest


def parse_csp(policy: str) -> list[tuple[str, list[str]]]:
    directives = []
    for chunk in policy.split(";"):
        tokens = chunk.split()
        if tokens:
            directives.append((tokens[0], tokens[1:]))
    return directives


def format_csp(directives: list[tuple[str, list[str]]]) -> str:
    return "; ".join(" ".join([name] + sources) for name, sources in directives)


def create_csp_string(manifest: dict[str, Any], platform: str) -> str:
    policy = manifest.get("content_security_policy") if manifest else None
    if isinstance(policy, str) and policy.strip():
        directives = parse_csp(policy)
    else:
        directives = [(name, list(sources)) for name, sources in DEFAULT_CSP_DIRECTIVES]

    extra_sources = PLATFORM_CSP_SOURCES.get(platform, [])
    for name, sources in directives:
        if name == "default-src":
            sources.extend(source for source in extra_sources if source not in sources)
            break
    else:
        if extra_sources:
            directives.insert(0, ("default-src", ["'self'"] + extra_sources))

    return format_csp(directives)
