#!/usr/bin/env python3
import argparse
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Optional, Union

from patch_errors import MalformedPlatformXml

ANDROID_NS = "http://schemas.android.com/apk/res/android"
TOOLS_NS = "http://schemas.android.com/tools"
ANDROID_THEME = f"{{{ANDROID_NS}}}theme"
DEFAULT_ANDROID_THEME = "@android:style/Theme.Translucent"
XML_INDENT = "    "

STRINGS_XML = ("res", "values", "strings.xml")
ANDROID_MANIFEST_XML = "AndroidManifest.xml"
LAUNCHER_NAME_PATH = "./string[@name='launcher_name']"
ACTIVITY_PATH = "./application/activity"


def register_declared_prefixes(xml_path: Path):
    for _event, (prefix, uri) in ET.iterparse(xml_path, events=("start-ns",)):
        # ElementTree reserves ns0, ns1... for prefixes it makes up itself.
        if prefix and not re.match(r"ns\d+$", prefix):
            ET.register_namespace(prefix, uri)


def load_xml(xml_path: Path) -> ET.ElementTree:
    ET.register_namespace("android", ANDROID_NS)
    ET.register_namespace("tools", TOOLS_NS)
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    try:
        register_declared_prefixes(xml_path)
        return ET.parse(xml_path, parser=parser)
    except ET.ParseError as error:
        raise MalformedPlatformXml(xml_path, f"cannot parse XML ({error})") from error


def write_xml(tree: ET.ElementTree, xml_path: Path):
    ET.indent(tree, space=XML_INDENT)
    content = ET.tostring(tree.getroot(), encoding="utf-8", xml_declaration=True)
    with open(xml_path, "wb") as f:
        f.write(content)


def find_required(tree: ET.ElementTree, path: str, xml_path: Path) -> ET.Element:
    element = tree.getroot().find(path)
    if element is None:
        raise MalformedPlatformXml(xml_path, f"no element matches {path}")
    return element


def patch_launcher_name(strings_path: Union[str, Path], short_name: str):
    strings_path = Path(strings_path)
    tree = load_xml(strings_path)
    find_required(tree, LAUNCHER_NAME_PATH, strings_path).text = str(short_name)
    write_xml(tree, strings_path)


def resolve_android_theme(manifest: dict[str, Any]) -> str:
    return manifest.get("androidTheme") or DEFAULT_ANDROID_THEME


def patch_activity_theme(manifest_path: Union[str, Path], theme: str):
    manifest_path = Path(manifest_path)
    tree = load_xml(manifest_path)
    find_required(tree, ACTIVITY_PATH, manifest_path).set(ANDROID_THEME, str(theme))
    write_xml(tree, manifest_path)


def patch_android_platform(android_dir: Union[str, Path], manifest: Optional[dict[str, Any]]):
    if manifest is None:
        return

    android_dir = Path(android_dir)
    short_name = manifest.get("short_name")
    if short_name:
        print(f"[post-prepare] android launcher_name -> '{short_name}'")
        patch_launcher_name(android_dir.joinpath(*STRINGS_XML), short_name)

    theme = resolve_android_theme(manifest)
    print(f"[post-prepare] android activity theme -> '{theme}'")
    patch_activity_theme(android_dir / ANDROID_MANIFEST_XML, theme)


def main():
    parser = argparse.ArgumentParser(description="Patch Android strings.xml and AndroidManifest.xml from a web-app manifest")
    parser.add_argument("--android-dir", default="platforms/android", help="Android platform directory")
    parser.add_argument("--short-name", default=None, help="Value for the launcher_name string")
    parser.add_argument("--theme", default=None, help=f"Activity theme (default: {DEFAULT_ANDROID_THEME})")
    args = parser.parse_args()

    manifest = {"short_name": args.short_name, "androidTheme": args.theme}
    patch_android_platform(args.android_dir, manifest)
    print(f"Patched Android platform files in {args.android_dir}")


if __name__ == "__main__":
    import sys
    try:
        main()
    except Exception as e:
        print(f"FATAL ERROR in platform_xml_patch: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc(file=sys.stderr)
        sys.exit(1)
