from app.core.security import now_utc
from app.db.session import SessionLocal
from app.services.deletion_guard import purge_expired_tokens


def main():
    db = SessionLocal()
    try:
        deleted = purge_expired_tokens(db, now_utc())
        db.commit()
        print(f"ok: cleanup done (deletion_reset_tokens={deleted})")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
