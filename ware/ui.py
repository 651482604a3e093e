"""
Terminal output helpers for ware: colors, banner and progress spinner
"""

import itertools
import subprocess
import sys
import time
from typing import List, Optional

GREEN = "\033[32m"
RED = "\033[31m"
BLUE = "\033[34m"
YELLOW = "\033[33m"
CYAN = "\033[36m"
RESET = "\033[0m"

SPINNER_FRAMES = "-\\|/"
SPINNER_INTERVAL = 0.1


def header(json_mode: bool = False):
    """Print the ware banner unless running in --json mode"""
    if json_mode:
        return
    print(f"{BLUE}SkywareOS Package Manager (ware){RESET}")
    print()


def info(message: str):
    print(f"{CYAN}→ {message}{RESET}")


def success(message: str):
    print(f"{GREEN}✔ {message}{RESET}")


def warn(message: str):
    print(f"{YELLOW}⚠ {message}{RESET}")


def error(message: str):
    print(f"{RED}✖ {message}{RESET}", file=sys.stderr)


def hint(message: str):
    print(f"  → {message}")


def print_search_results(label: str, results, limit: int = 20):
    print(f"{BLUE}[{label}]{RESET}")
    if not results:
        print("  No results found")
    for result in results[:limit]:
        print(f"  {result.package_id} {GREEN}{result.version}{RESET}")
        if result.description:
            print(f"    {result.description}")
    if len(results) > limit:
        print(f"  ... and {len(results) - limit} more")
    print()


def print_installed(label: str, packages):
    print(f"{BLUE}[{label}]{RESET}")
    if not packages:
        print("  No packages installed")
    for pkg in packages:
        print(f"  {pkg.package_id} {pkg.version}")
    print()


def print_details(details):
    rows = [
        ("Name", details.name),
        ("ID", details.package_id),
        ("Version", details.version),
        ("Description", details.description),
        ("Source", details.package_manager),
        ("Repository", details.repository),
        ("URL", details.homepage),
        ("License", details.license),
        ("Size", details.size),
        ("Depends On", " ".join(details.dependencies) if details.dependencies else None),
    ]
    for key, value in rows:
        if value:
            print(f"{CYAN}{key:<12}{RESET}: {value}")


def run_with_spinner(argv: List[str], show_spinner: bool = True,
                     cwd: Optional[str] = None) -> int:
    """Run argv with the terminal inherited and return its exit status

    While the child runs, a spinner is redrawn every 100ms on stderr.
    """
    process = subprocess.Popen(argv, cwd=cwd)

    if not show_spinner or not sys.stderr.isatty():
        return process.wait()

    for frame in itertools.cycle(SPINNER_FRAMES):
        if process.poll() is not None:
            break
        sys.stderr.write(f"\r{CYAN}[{frame}] Working...{RESET}")
        sys.stderr.flush()
        time.sleep(SPINNER_INTERVAL)

    sys.stderr.write("\r")
    sys.stderr.flush()
    return process.returncode
