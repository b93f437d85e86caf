import sys
import os
import argparse
from locust.main import main as locust_main

# Ensure the correct path to locustfile.py
LOCUSTFILE_PATH = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "locustfile.py")
)


def parse_arguments():
    """Parses command-line arguments for the voting load test."""
    parser = argparse.ArgumentParser(
        description="Load test the group voting flow (pool adds, rankings, results)."
    )

    parser.add_argument(
        "--host",
        type=str,
        default="http://localhost:6003",
        help="Target host URL",
    )
    parser.add_argument(
        "--users", type=int, default=50, help="Number of concurrent voters"
    )
    parser.add_argument(
        "--spawn-rate", type=int, default=5, help="Voter spawn rate per second"
    )
    parser.add_argument(
        "--run-time",
        type=str,
        default="5m",
        help="Total test duration (e.g., 5m, 1h)",
    )
    parser.add_argument(
        "--csv",
        type=str,
        default=None,
        help="Write CSV statistics with this file prefix",
    )
    parser.add_argument(
        "--headless", action="store_true", help="Run Locust in headless mode"
    )

    return parser.parse_args()


def build_locust_argv(args):
    argv = [
        "locust",
        "-f",
        LOCUSTFILE_PATH,
        "--host",
        args.host,
        "--users",
        str(args.users),
        "--spawn-rate",
        str(args.spawn_rate),
        "--run-time",
        args.run_time,
    ]
    if args.csv:
        argv.extend(["--csv", args.csv])
    if args.headless:
        argv.append("--headless")
    return argv


if __name__ == "__main__":
    sys.argv = build_locust_argv(parse_arguments())
    locust_main()
