# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/greenverse/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-email admin@greenverse.local] [--admin-password ...]
#   Idempotent bootstrap: creates tables, the admin user and sample products.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role client]
#   List users with role and cluster affiliation.
# - python -m flask users create --email a@b.c --name "A" --password "secret1" --role admin
#   Create a user (prompts if options are omitted).
#
# Cluster inspection:
# - python -m flask clusters list
#   List clusters with capacity, utilization and status.

import click
from flask.cli import with_appcontext

from .errors import ApiError
from .extensions import db
from .models import Cluster, Product, User
from .roles import Role
from .services.auth_service import build_user
from .services.cluster_service import employees_count


DEFAULT_ADMIN_EMAIL = "admin@greenverse.local"
DEFAULT_ADMIN_PASSWORD = "admin123"

SAMPLE_PRODUCTS = [
    ("Bamboo Toothbrush Set", "Personal Care", 24900, 120),
    ("Areca Leaf Plates (50)", "Tableware", 34900, 200),
    ("Coir Door Mat", "Home", 44900, 80),
    ("Banana Fiber Tote Bag", "Bags", 29900, 150),
    ("Organic Compost 5kg", "Garden", 19900, 300),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-email', default=DEFAULT_ADMIN_EMAIL, help='Admin account email')
@click.option('--admin-password', default=DEFAULT_ADMIN_PASSWORD, help='Admin account password')
@with_appcontext
def init_system(admin_email, admin_password):
    """
    Initialize GreenVerse: schema, admin user and sample products.

    Safe to run repeatedly; existing rows are left untouched.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing GreenVerse...")

    db.create_all()
    click.echo("PASS Tables created")

    existing = db.session.query(User).filter_by(email=admin_email.strip().lower()).first()
    if existing:
        click.echo(f"WARN  Admin '{admin_email}' already exists, skipping...")
    else:
        try:
            build_user(email=admin_email, password=admin_password, name="Administrator", role=Role.ADMIN)
            db.session.commit()
            click.echo(f"PASS Created admin user: {admin_email}")
        except ApiError as e:
            db.session.rollback()
            raise click.ClickException(f"Failed to create admin user: {e.message}")

    if db.session.query(Product).count() == 0:
        for name, category, price_cents, stock in SAMPLE_PRODUCTS:
            db.session.add(Product(name=name, category=category, price_cents=price_cents, stock=stock))
        db.session.commit()
        click.echo(f"PASS Created {len(SAMPLE_PRODUCTS)} sample products")
    else:
        click.echo("WARN  Products already present, skipping samples...")

    click.echo("DONE GreenVerse initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice([r.value for r in Role]), default=Role.CLIENT.value, help='Role')
@click.option('--cluster-id', default=None, help='Cluster ID (cluster role only)')
@with_appcontext
def create_user_cli(email, name, password, role, cluster_id):
    """Create a user. Password must be at least 6 characters."""
    role = Role(role)
    if role is Role.CLUSTER and (not cluster_id or db.session.get(Cluster, cluster_id) is None):
        raise click.ClickException("Cluster accounts need an existing --cluster-id")

    try:
        user = build_user(email=email, password=password, name=name, role=role, cluster_id=cluster_id)
        db.session.commit()
    except ApiError as e:
        db.session.rollback()
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


@users_group.command('list')
@click.option('--role', type=click.Choice([r.value for r in Role]), help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users with their roles."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)

    users = query.order_by(User.created_at.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*110)
    click.echo(f"{'ID':<38} {'Email':<32} {'Name':<22} {'Role':<8} {'Cluster'}")
    click.echo("="*110)

    for user in users:
        click.echo(f"{user.id:<38} {user.email:<32} {user.name[:21]:<22} {user.role:<8} {user.cluster_id or '-'}")

    click.echo("="*110 + "\n")


@click.group('clusters')
def clusters_group():
    """Cluster inspection commands."""


@clusters_group.command('list')
@with_appcontext
def list_clusters():
    """List clusters with capacity, utilization and employee count."""
    clusters = db.session.query(Cluster).order_by(Cluster.name.asc()).all()

    if not clusters:
        click.echo("No clusters found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<38} {'Name':<24} {'Capacity':<10} {'Util %':<8} {'Staff':<7} {'Status'}")
    click.echo("="*100)

    for cluster in clusters:
        click.echo(
            f"{cluster.id:<38} {cluster.name[:23]:<24} {cluster.capacity:<10} "
            f"{cluster.utilization:<8} {employees_count(cluster.id):<7} {cluster.status}"
        )

    click.echo("="*100 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(clusters_group)
