from __future__ import annotations

from oidc_mock.server import serve_forever


def main() -> None:
    serve_forever()


if __name__ == "__main__":
    main()
