import argparse
import random
import sys
import uuid
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from heartconnect.auth.security import create_access_token
from heartconnect.main import run_migrations
from heartconnect.repo import SqlStorage

FIRST_NAMES = ["Ava", "Noah", "Mia", "Liam", "Zoe", "Eli", "Nora", "Leo", "Ivy", "Kai", "Ruby", "Sam"]
GENDERS = ["woman", "man", "nonbinary"]
INTERESTS = ["hiking", "coffee", "jazz", "cooking", "travel", "climbing", "films", "books", "yoga", "board games"]
LOCATIONS = ["Brooklyn", "Queens", "Jersey City", "Manhattan", "Hoboken"]


def seed_demo_users(storage: SqlStorage, n_users: int, seed: int, premium_share: float) -> list[dict]:
    rng = random.Random(seed)
    created = []
    for i in range(n_users):
        user_id = str(uuid.UUID(int=rng.getrandbits(128)))
        first_name = rng.choice(FIRST_NAMES)
        user = storage.upsert_user(
            user_id,
            email=f"demo{i}@heartconnect.local",
            first_name=first_name,
            last_name=f"Demo{i}",
        )
        profile = storage.create_profile(
            user_id,
            {
                "bio": f"{first_name} likes {rng.choice(INTERESTS)}.",
                "age": rng.randint(21, 45),
                "gender": rng.choice(GENDERS),
                "location": rng.choice(LOCATIONS),
                "interests": rng.sample(INTERESTS, 3),
                "photos": [f"https://picsum.photos/seed/{user_id}/600/800"],
                "looking_for": rng.choice(GENDERS + ["everyone"]),
                "age_range_min": 18,
                "age_range_max": 99,
                "max_distance": 50,
            },
        )
        if rng.random() < premium_share:
            profile = storage.set_premium(user_id, True)
        created.append({"user": user, "profile": profile})
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo HeartConnect users")
    parser.add_argument("--n-users", type=int, default=20)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--premium-share", type=float, default=0.1)
    parser.add_argument("--print-tokens", action="store_true")
    args = parser.parse_args()

    run_migrations()
    rows = seed_demo_users(SqlStorage(), n_users=args.n_users, seed=args.seed, premium_share=args.premium_share)

    print("Seed completed")
    print(f"- users: {len(rows)}")
    print(f"- premium: {sum(1 for r in rows if r['profile'].get('is_premium'))}")
    if args.print_tokens:
        for r in rows:
            user = r["user"]
            print(f"{user['email']}\t{create_access_token(user['id'], email=user['email'], first_name=user['first_name'], last_name=user['last_name'])}")


if __name__ == "__main__":
    main()
