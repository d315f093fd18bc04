from fastapi import Request


# every request that needs DB will get a fresh session, and it will always close.
# The session factory is built once by create_app() and lives on app.state.
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
