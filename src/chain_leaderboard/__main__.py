"""
Command line entry point.

Usage:
  python -m chain_leaderboard build [--csv <path>] [--verbose]   # print leaderboard JSON
  python -m chain_leaderboard check [--verbose]                  # node reachability: chain id + head

Configuration comes from LEADERBOARD_* environment variables (or .env), e.g.
  LEADERBOARD_RPC_URL=https://rpc.linea.build
  LEADERBOARD_CONTRACT_ADDRESS=0x0E153774004835dcf78d7F8AE32bD00cF1743A7a
"""

import json
import logging
import sys
from typing import List, Optional

import pandas as pd

from chain_leaderboard.config import load_settings
from chain_leaderboard.errors import LeaderboardError, OutputError
from chain_leaderboard.models import Leaderboard
from chain_leaderboard.service import LeaderboardService

logger = logging.getLogger(__name__)

USAGE = "Usage: build [--csv <path>] | check   (add --verbose for debug logs)"


def write_csv(leaderboard: Leaderboard, path: str) -> None:
    df = pd.DataFrame([row.to_dict() for row in leaderboard.rows],
                      columns=["wallet", "totalBuys", "totalClaims", "bonusPercent", "bonusValueUsd"])
    df.index = df.index + 1
    try:
        df.to_csv(path, index_label="rank")
    except OSError as e:
        raise OutputError(f"cannot write CSV to {path}: {e}") from e
    logger.info("Wrote %d rows to %s", len(df), path)


def run_build(csv_path: Optional[str]) -> dict:
    service = LeaderboardService(load_settings())
    leaderboard = service.build()
    if csv_path:
        write_csv(leaderboard, csv_path)
    return leaderboard.to_dict()


def run_check() -> dict:
    settings = load_settings()
    service = LeaderboardService(settings)
    return {
        "ok": True,
        "rpcUrlUsed": settings.rpc_url,
        "chainId": service.client.chain_id(),
        "latestBlock": service.client.block_number(),
    }


def main(argv: Optional[List[str]] = None) -> int:
    args = [a.strip() for a in (sys.argv[1:] if argv is None else argv)]
    verbose = "--verbose" in args
    args = [a for a in args if a != "--verbose"]

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(message)s',
        stream=sys.stderr,
    )

    if not args:
        print(USAGE, file=sys.stderr)
        return 2

    cmd = args[0].lower()
    try:
        if cmd == "build":
            csv_path = None
            if "--csv" in args:
                i = args.index("--csv")
                if i + 1 >= len(args):
                    print("--csv requires a path", file=sys.stderr)
                    return 2
                csv_path = args[i + 1]
            result = run_build(csv_path)
        elif cmd == "check":
            result = run_check()
        else:
            print(USAGE, file=sys.stderr)
            return 2
    except LeaderboardError as e:
        logger.error("Failed to %s leaderboard: %s", cmd, e.detail)
        print(json.dumps(e.to_dict(), indent=2))
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
