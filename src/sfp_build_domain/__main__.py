"""Allow ``python -m sfp_build_domain``."""

from sfp_build_domain.cli.main import run_main

if __name__ == "__main__":
    run_main()
