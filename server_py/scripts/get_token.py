import json
import sys
import urllib.request

BASE_URL = "http://127.0.0.1:4001"


def post(path: str, payload: dict) -> dict:
    data = json.dumps(payload).encode("utf-8")
    req = urllib.request.Request(
        f"{BASE_URL}{path}",
        data=data,
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    with urllib.request.urlopen(req) as resp:
        body = resp.read().decode("utf-8")
        print(f"POST {path} -> {resp.status}\n{body}\n")
        return json.loads(body)


def main() -> None:
    if len(sys.argv) != 3:
        raise SystemExit("usage: get_token.py <email> <password>")
    email, password = sys.argv[1], sys.argv[2]
    login_resp = post("/api/v1/auth/login", {"email": email, "password": password})
    token = login_resp.get("access_token")
    if not token:
        raise RuntimeError("Не удалось получить access_token из ответа login")
    print(f"Токен для {email} ({login_resp.get('role')}): {token}")


if __name__ == "__main__":
    main()
