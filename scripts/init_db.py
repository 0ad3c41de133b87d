import argparse, asyncio, os
from vendorcart.db import apply_schema

if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Create the cart/checkout tables")
    ap.add_argument('--dsn', default=os.environ.get("DATABASE_URL"), help='Postgres DSN (defaults to DATABASE_URL)')
    args = ap.parse_args()
    if not args.dsn:
        ap.error("no DSN given and DATABASE_URL is not set")
    asyncio.run(apply_schema(args.dsn))
    print("schema applied")
