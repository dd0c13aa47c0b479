"""
Entry point for python -m log_shipper

Usage:
    some-program | python -m log_shipper [config_path]

See log_shipper.daemon.main for how the configuration path is resolved.
"""
from .daemon import main


if __name__ == "__main__":
    main()
