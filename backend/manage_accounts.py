"""Create admin and subscriber accounts from the command line.

Usage:
    python -m backend.manage_accounts create-admin +919000000000 "Clinic Admin"
    python -m backend.manage_accounts create-subscriber 9000000000 "Asha Rao" "African Grey" monthly
"""
import argparse
import getpass
import sys

from backend.auth.passwords import hash_password
from backend.database import Base, SessionLocal, engine
from backend.models.admin_user import AdminUser
from backend.models.subscription import SubscriptionPlan
from backend.models.user_account import UserAccount
from backend.services.subscriptions import create_subscription


def read_password() -> str:
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        print("Passwords do not match.", file=sys.stderr)
        sys.exit(1)
    return password


def create_admin(db, args: argparse.Namespace) -> None:
    if db.query(AdminUser).filter(AdminUser.mobile == args.mobile).first():
        print(f"Admin {args.mobile} already exists.", file=sys.stderr)
        sys.exit(1)

    admin = AdminUser(mobile=args.mobile, full_name=args.full_name, password=hash_password(read_password()))
    db.add(admin)
    db.commit()
    print(f"Created admin {admin.id} ({admin.mobile}).")


def create_subscriber(db, args: argparse.Namespace) -> None:
    if db.get(UserAccount, args.phone):
        print(f"Account {args.phone} already exists.", file=sys.stderr)
        sys.exit(1)

    subscription = create_subscription(
        db,
        full_name=args.full_name,
        mobile_number=args.phone,
        bird_species=args.bird_species,
        plan=SubscriptionPlan(args.plan),
    )
    db.add(
        UserAccount(
            phone=args.phone,
            full_name=args.full_name,
            password=hash_password(read_password()),
            subscription_id=subscription.id,
        )
    )
    db.commit()
    print(f"Created {args.plan} subscription {subscription.id} for {args.phone}.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m backend.manage_accounts")
    commands = parser.add_subparsers(dest="command", required=True)

    admin_parser = commands.add_parser("create-admin")
    admin_parser.add_argument("mobile")
    admin_parser.add_argument("full_name")
    admin_parser.set_defaults(handler=create_admin)

    subscriber_parser = commands.add_parser("create-subscriber")
    subscriber_parser.add_argument("phone")
    subscriber_parser.add_argument("full_name")
    subscriber_parser.add_argument("bird_species")
    subscriber_parser.add_argument("plan", choices=[plan.value for plan in SubscriptionPlan])
    subscriber_parser.set_defaults(handler=create_subscriber)

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        args.handler(db, args)
    finally:
        db.close()


if __name__ == "__main__":
    main()
