# ==============================================================================
# ASSET EXPORTER - MAIN ENTRY POINT
# ==============================================================================
# Launcher for the Asset Exporter command-line interface.
#
# Usage:
#   python main.py export --archive data.grf --script export.txt --output out/
#   python main.py --help       # Show help
#   python main.py --check      # Check dependencies
#   python main.py --paths      # Show data paths
#
# Anything that is not a launcher flag is handed to asset_exporter.cli.
# ==============================================================================

import os
import sys
import traceback

# ==============================================================================
# FROZEN EXE DETECTION
# ==============================================================================
IS_FROZEN = getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS')

if IS_FROZEN:
    BASE_PATH = sys._MEIPASS
else:
    BASE_PATH = os.path.dirname(os.path.abspath(__file__))

VERSION = "1.0.0"

# ==============================================================================
# BANNER
# ==============================================================================

def print_banner():
    """Print the application banner."""
    banner = f"""
    ╔═══════════════════════════════════════════════════════════════╗
    ║                                                               ║
    ║                      A S S E T   E X P O R T E R              ║
    ║                                                               ║
    ║         Script-driven export of GRF and folder archives       ║
    ║                        Version {VERSION}                          ║
    ║                                                               ║
    ╚═══════════════════════════════════════════════════════════════╝
    """
    print(banner)


# ==============================================================================
# DEPENDENCY CHECKS
# ==============================================================================

def check_dependencies():
    """
    Check if required dependencies are installed.

    Returns:
        Tuple of (all_ok, missing_packages)
    """
    missing = []

    # import name -> package name
    core_deps = {
        'sqlalchemy': 'SQLAlchemy',
        'PIL': 'Pillow',
        'numpy': 'numpy',
    }

    for module, package in core_deps.items():
        try:
            __import__(module)
        except ImportError:
            missing.append(package)

    return (len(missing) == 0, missing)


# ==============================================================================
# MODE LAUNCHERS
# ==============================================================================

def run_cli(argv):
    """
    Run the command-line interface.

    Returns:
        Exit code of the command
    """
    if BASE_PATH not in sys.path:
        sys.path.insert(0, BASE_PATH)

    from asset_exporter.cli import main as cli_main
    return cli_main(argv)


# ==============================================================================
# ARGUMENT PARSING
# ==============================================================================

def parse_args():
    """Pick out launcher flags; everything else goes to the CLI."""
    argv = sys.argv[1:]
    args = {
        'version': '--version' in argv,
        'check': '--check' in argv,
        'paths': '--paths' in argv,
        'help': not argv or argv[0] in ('--help', '-h'),
        'cli_argv': [a for a in argv if a not in ('--cli',)],
    }
    return args


# ==============================================================================
# MAIN FUNCTION
# ==============================================================================

def main():
    """
    Main entry point for Asset Exporter.

    Returns:
        Process exit code
    """
    args = parse_args()

    if args['version']:
        print(f"Asset Exporter v{VERSION}")
        print("Script-driven export of GRF and folder archives")
        return 0

    if args['paths']:
        if BASE_PATH not in sys.path:
            sys.path.insert(0, BASE_PATH)
        from asset_exporter.core.paths import Paths

        print("Asset Exporter Paths:")
        print(f"  Frozen:         {IS_FROZEN}")
        print(f"  Base Path:      {BASE_PATH}")
        print(f"  User Data:      {Paths.get_user_data_dir()}")
        print(f"  Config:         {Paths.get_config_path()}")
        print(f"  Ledger:         {Paths.get_ledger_path()}")
        print(f"  Output:         {Paths.get_default_output_dir()}")
        return 0

    if args['check']:
        print("Checking dependencies...")
        print(f"  Frozen: {IS_FROZEN}")
        print(f"  Python: {sys.version}")

        all_ok, missing = check_dependencies()

        if all_ok:
            print("[OK] All core dependencies installed")
        else:
            print(f"[MISSING] {', '.join(missing)}")
        return 0 if all_ok else 1

    if args['help']:
        print_banner()
        print("\nUsage: python main.py [options] <command> [command options]")
        print("\nOptions:")
        print("  --help, -h   Show this help message")
        print("  --version    Show version information")
        print("  --check      Check dependencies and exit")
        print("  --paths      Show data paths and exit")
        print("\nCommands:")
        print("  export       Run an export script against archives")
        print("  list         List archive entries")
        print("  formats      Show how each extension is exported")
        print("  history      Show recorded export runs")
        print("\nRun 'python main.py <command> --help' for command options.")
        return 0

    all_ok, missing = check_dependencies()
    if not all_ok:
        print(f"[ERROR] Missing required packages: {', '.join(missing)}")
        return 1

    try:
        return run_cli(args['cli_argv'])
    except Exception as e:
        print(f"\n[FATAL ERROR] {e}")
        traceback.print_exc()
        return 1


# ==============================================================================
# SCRIPT ENTRY POINT
# ==============================================================================
if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
