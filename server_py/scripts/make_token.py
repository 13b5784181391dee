"""Выпускает JWT токен для ручной проверки API: make_token.py <identity_id> <role>."""
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from rideops.core.security import create_access_token


def main() -> None:
    if len(sys.argv) != 3:
        raise SystemExit("usage: make_token.py <identity_id> <admin|driver|customer>")
    identity_id, role = sys.argv[1], sys.argv[2]
    print(create_access_token({"sub": identity_id, "role": role}))


if __name__ == "__main__":
    main()
