"""RBAC Console CLI tool (rbacctl)."""

import typer
from sqlalchemy.engine import make_url

app = typer.Typer(name="rbacctl", help="RBAC Console CLI")
db_app = typer.Typer(help="Database management commands")
app.add_typer(db_app, name="db")


def _mysql_server_connection():
    """Connection to the MySQL server named in DATABASE_URL, plus the database name."""
    import pymysql
    from rbac_console.core.config import settings

    url = make_url(settings.DATABASE_URL)
    if url.get_backend_name() != "mysql":
        typer.echo(f"DATABASE_URL is not a MySQL URL ({url.get_backend_name()})", err=True)
        raise typer.Exit(code=1)

    conn = pymysql.connect(
        host=url.host or "localhost",
        port=url.port or 3306,
        user=url.username,
        password=url.password or "",
    )
    return conn, url.database


@db_app.command("create")
def db_create():
    """Create the MySQL database if it doesn't exist."""
    conn, db_name = _mysql_server_connection()
    try:
        cursor = conn.cursor()
        cursor.execute(f"CREATE DATABASE IF NOT EXISTS `{db_name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()
        typer.echo(f"Database '{db_name}' created (or already exists)")
    finally:
        conn.close()


@db_app.command("init")
def db_init():
    """Create all tables."""
    from rbac_console.db.session import init_db

    init_db()
    typer.echo("Tables created")


@db_app.command("seed")
def db_seed():
    """Seed default roles, permissions and the admin user."""
    from rbac_console.db.session import SessionLocal, init_db
    from rbac_console.db.seeds import seed_roles, seed_admin

    init_db()
    db = SessionLocal()
    try:
        roles_seeded = seed_roles(db)
        admin_seeded = seed_admin(db)
    finally:
        db.close()
    typer.echo(
        f"Roles/permissions: {'seeded' if roles_seeded else 'already present'}; "
        f"admin: {'created' if admin_seeded else 'already present'}"
    )


@db_app.command("reset")
def db_reset():
    """Drop and recreate every table, then seed (DANGER)."""
    confirm = typer.confirm("This will DROP every table. Continue?")
    if not confirm:
        raise typer.Abort()
    from rbac_console.db.session import SessionLocal, drop_db, init_db
    from rbac_console.db.seeds import seed_all

    drop_db()
    init_db()
    db = SessionLocal()
    try:
        seed_all(db)
    finally:
        db.close()
    typer.echo("Database reset")


@app.command("create-admin")
def create_admin(
    email: str = typer.Argument(..., help="Admin email"),
    name: str = typer.Option("Admin", help="Display name"),
    username: str = typer.Option(None, help="Optional username"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Create an additional user with the Admin role."""
    from rbac_console.db.session import SessionLocal, init_db
    from rbac_console.services.rbac_service import SUPERUSER_ROLE
    from rbac_console.services.user_service import user_service
    from rbac_console.core.exceptions import RBACConsoleError

    from rbac_console.db.seeds import seed_roles

    init_db()
    db = SessionLocal()
    try:
        seed_roles(db)
        user = user_service.create_user(
            db, name, email, password, username, SUPERUSER_ROLE, actor="system",
        )
    except RBACConsoleError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()
    typer.echo(f"Created admin [{user['id']}] {user['email']}")


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(3001, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload"),
):
    """Start the API server."""
    import uvicorn
    uvicorn.run("rbac_console.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
