"""Connect to the first reachable database host, trying a different one per attempt"""

import logging
import random
import socket
import sys

from relentless import Bounded, RetryDriver

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

HOSTS = ["db1.internal:5432", "db2.internal:5432", "db3.internal:5432"]


def main(hosts):
    hosts = random.sample(hosts, len(hosts))
    driver = RetryDriver(Bounded(len(hosts) * 2), base_delay=0.5, start_index=0)

    @driver
    def connect(attempt):
        host, port = hosts[attempt % len(hosts)].rsplit(":", 1)
        print(f"Attempt {attempt}: connecting to {host}:{port}")
        return socket.create_connection((host, int(port)), timeout=2)

    conn = connect()
    print(f"Connected to {conn.getpeername()}")
    conn.close()


if __name__ == "__main__":
    main(sys.argv[1:] or HOSTS)
