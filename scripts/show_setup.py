"""Print the setup catalog, or one setup's converted values with bars."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config import Config
from accsetups.main import SetupViewer, ValuesStatus

BAR_WIDTH = 20


def bar(percent):
    if percent is None:
        return ""
    filled = round(percent / 100 * BAR_WIDTH)
    return "[" + "#" * filled + "." * (BAR_WIDTH - filled) + "]"


async def run(args):
    config = Config()
    async with SetupViewer(config) as viewer:
        page = await viewer.load_page(
            car=args.car,
            track=args.track,
            car_class=args.car_class,
            file=args.file,
        )

        if page.load_error:
            print(f"Data load error: {page.load_error.message}")
            return 1

        selection = page.selection
        if args.list or not selection.has_primary_selection:
            print(f"{page.total_files} setup files")
            print("\nCars:")
            for option in page.index.cars:
                category = page.index.class_by_car[option.key].value.upper()
                print(f"  {option.label:<40} {category:<10} ({option.key})")
            print("\nTracks:")
            for option in page.index.tracks:
                print(f"  {option.label:<40} ({option.key})")
            return 0

        print(f"{len(selection.filtered_entries)} matching setups:")
        for entry in selection.filtered_entries:
            marker = "*" if entry.path == selection.selected_file else " "
            print(f" {marker} {entry.car_label} / {entry.track_label} / {entry.filename_label}")

        if page.values_error:
            print(f"\nValue load error: {page.values_error.message}")
            return 1
        if page.values_status != ValuesStatus.OK:
            print("\nNo converted values for this setup.")
            return 0

        for section in page.details:
            print(f"\n== {section.name}")
            for group in section.groups:
                print(f"  {group.name}")
                for item in group.items:
                    print(f"    {item.label:<16} {item.value:>12}  {bar(item.percent)}")
        return 0


def main():
    parser = argparse.ArgumentParser(description="Browse ACC setups from the command line")
    parser.add_argument("--car", help="Car name or key (e.g., audi_r8_lms_evo_ii)")
    parser.add_argument("--track", help="Track name or key (e.g., monza)")
    parser.add_argument("--car-class", default=None, help="Car class tab (gt3, gt4, ...)")
    parser.add_argument("--file", help="Repository path of the setup to show")
    parser.add_argument("--list", action="store_true", help="Only list cars and tracks")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
