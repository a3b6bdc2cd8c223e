#!/usr/bin/env python3
"""
CLI entry point for the mobile interaction engine.
"""

import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

DEFAULT_SETTINGS_PATH = "ui_automation/mobile_examples/engine_settings.example.json"


def _configure_logging() -> None:
    level_name = os.environ.get("MOBILE_LOG_LEVEL", "").strip().upper()
    if "--verbose" in sys.argv[1:]:
        level_name = "DEBUG"
    if level_name:
        logging.basicConfig(
            level=getattr(logging, level_name, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _ask_settings_path() -> str:
    return input(f"Engine settings JSON path [{DEFAULT_SETTINGS_PATH}]: ").strip() or DEFAULT_SETTINGS_PATH


def main():
    """
    Menu for the live-session helpers and offline locator discovery.
    """
    _configure_logging()

    print("=" * 60)
    print("Mobile Interaction Engine CLI (Appium)")
    print("=" * 60)
    print("\nOptions:")
    print("1. Capture UI XML from the current screen")
    print("2. Search captured UI XML (locator discovery)")
    print("3. Probe a locator on the current screen")
    print("4. Pick a date through a date field")
    print("5. Exit")

    choice = input("\nEnter your choice (1-5): ").strip()

    if choice == "1":
        from ui_automation.mobile.flows import capture_page_source

        path = capture_page_source(settings_json_path=_ask_settings_path())
        print(f"\n✓ Page source saved: {path}")
    elif choice == "2":
        from ui_automation.mobile.locators import describe
        from ui_automation.mobile.ui_xml_search import search_uiautomator_xml, suggest_locator

        xml_path = input("UI XML path: ").strip()
        query = input("Search query (e.g. 'Add Bug', 'bugTitle', 'date_picker'): ").strip()

        if not xml_path or not query:
            print("UI XML path and query are required.")
            return

        try:
            with open(xml_path, "r", encoding="utf-8") as f:
                xml = f.read()
        except FileNotFoundError:
            print(f"UI XML file not found: {xml_path}")
            return

        matches = search_uiautomator_xml(xml, query=query, limit=30)
        if not matches:
            print("No matches found.")
            return

        print(f"\nFound {len(matches)} match(es):")
        for i, m in enumerate(matches, 1):
            locator = suggest_locator(m)
            locator_str = describe(locator) if locator else "(no suggestion)"
            bounds_str = f"{m.bounds}" if m.bounds else "(no bounds)"
            print(f"{i:>2}. {locator_str} | {bounds_str}")
            if m.text:
                print(f"    text: {m.text}")
            if m.content_desc:
                print(f"    content-desc: {m.content_desc}")
            if m.resource_id:
                print(f"    resource-id: {m.resource_id}")
    elif choice == "3":
        from ui_automation.mobile.flows import run_locator_probe
        from ui_automation.mobile.locators import parse_locator

        settings_path = _ask_settings_path()
        locator = parse_locator(input("Locator (e.g. 'text:Create Bug', 'resource:bugTitle'): ").strip())
        visible = run_locator_probe(settings_json_path=settings_path, locator=locator)
        print("\n✓ Visible" if visible else "\n✗ Not visible")
    elif choice == "4":
        from ui_automation.mobile.flows import run_date_pick
        from ui_automation.mobile.locators import parse_locator

        settings_path = _ask_settings_path()
        field = parse_locator(input("Date field locator (e.g. 'resource:bugDate'): ").strip())
        date_str = input("Date (dd/MM/yyyy): ").strip()
        picked = run_date_pick(settings_json_path=settings_path, date_field=field, target=date_str)
        print(f"\n✓ Picked {picked.strftime('%d/%m/%Y')}")
    elif choice == "5":
        print("Exiting...")
        sys.exit(0)
    else:
        print("Invalid choice. Please choose 1-5.")


if __name__ == "__main__":
    main()
