from sqlalchemy import text  # Import text from SQLAlchemy
import sys
import os

sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))
)

from app import create_app, db

MOCK_GROUPS = "SELECT id FROM user_groups WHERE name LIKE 'mock-group-%'"
MOCK_USERS = "SELECT id FROM users WHERE username LIKE 'mock-%'"

# Children first so foreign keys never dangle
STATEMENTS = [
    f"DELETE FROM user_movie_rankings WHERE group_id IN ({MOCK_GROUPS});",
    f"DELETE FROM ranking_results WHERE group_id IN ({MOCK_GROUPS});",
    f"DELETE FROM ranking_submission_logs WHERE group_id IN ({MOCK_GROUPS});",
    f"DELETE FROM group_invitations WHERE group_id IN ({MOCK_GROUPS});",
    "DELETE FROM movie_pool_entries WHERE pool_id IN "
    f"(SELECT id FROM movie_pools WHERE group_id IN ({MOCK_GROUPS}));",
    f"DELETE FROM movie_pools WHERE group_id IN ({MOCK_GROUPS});",
    f"DELETE FROM group_members WHERE group_id IN ({MOCK_GROUPS});",
    "DELETE FROM user_groups WHERE name LIKE 'mock-group-%';",
    f"DELETE FROM friendships WHERE user_id IN ({MOCK_USERS}) "
    f"OR friend_id IN ({MOCK_USERS});",
    f"DELETE FROM friend_requests WHERE sender_id IN ({MOCK_USERS}) "
    f"OR receiver_id IN ({MOCK_USERS});",
    f"DELETE FROM user_watchlist WHERE user_id IN ({MOCK_USERS});",
    f"DELETE FROM user_watched_movies WHERE user_id IN ({MOCK_USERS});",
    "DELETE FROM users WHERE username LIKE 'mock-%';",
]


app = create_app()
with app.app_context():

    def rollback_test_data():
        try:
            # Ensure raw SQL queries use text()
            for statement in STATEMENTS:
                db.session.execute(text(statement))
            db.session.commit()
            print("✅ Test data successfully rolled back.")
        except Exception as e:
            db.session.rollback()
            print(f"❌ Rollback failed: {e}")

    rollback_test_data()
