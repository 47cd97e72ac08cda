#!/usr/bin/env python3
import json
import logging
import sys
import threading

from gameshelf import config_from_env, resolve_paths
from gameshelf.paths import PROJECT_ROOT
from gameshelf.registry import InstanceRegistry
from gameshelf.scanning import AssetScanner

def main(argv) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(threadName)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    config = config_from_env(default_ignore_file=PROJECT_ROOT / "config" / "ignore-games.json")
    paths = resolve_paths()
    scanner = AssetScanner(paths, config.ignore_list)

    if argv[1:2] == ["scan"]:
        print(json.dumps(scanner.scan().to_dict(), indent=2))
        return 0

    registry = InstanceRegistry(config, paths, scanner=scanner)
    port = registry.start_discovery()
    print(f"Discovery server on http://{config.host}:{port}/health")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        registry.shutdown()
    return 0

if __name__ == "__main__":
    sys.exit(main(sys.argv))
