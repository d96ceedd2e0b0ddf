# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/shopadmin/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, default permissions and roles.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List users with role and status.
# - python -m flask users create-super-admin --email root@shop.local --password "Password123!"
#   Create an active super_admin account.
#
# Permissions:
# - python -m flask perms list [--role admin] [--module products]
# - python -m flask perms check root@shop.local products.create

import click
from flask.cli import with_appcontext

from .enums import UserRole, UserStatus
from .extensions import db
from .models import Permission, User
from .security import PasswordValidationError
from .services import authorization_service, permission_service, role_service, user_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables, default permissions and default roles.

    Safe to run repeatedly: existing rows are left alone.
    """
    click.echo("START Initializing shop admin...")
    db.create_all()

    perm_count = permission_service.initialize_permissions()
    role_count = role_service.create_default_roles()
    assignment_count = role_service.assign_default_role_permissions()

    click.echo(f"PASS Created {perm_count} permissions, {role_count} roles, {assignment_count} role assignments")
    click.echo("DONE Run 'flask users create-super-admin' to add the first account.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate every table."""
    if not yes and not click.confirm("This deletes ALL data. Continue?"):
        click.echo("Aborted.")
        return
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all live users with their roles."""
    users = (
        db.session.query(User)
        .filter(User.deleted_at.is_(None))
        .order_by(User.created_at.asc())
        .all()
    )
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'Email':<35} {'Name':<30} {'Role':<15} {'Status'}")
    click.echo("="*100)
    for user in users:
        role_name = user.role.name if user.role else "none"
        click.echo(f"{user.email:<35} {user.full_name:<30} {role_name:<15} {user.status}")
    click.echo("="*100 + "\n")


@users_group.command('create-super-admin')
@click.option('--email', prompt=True, help='Login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--first-name', default='Super', help='First name')
@click.option('--last-name', default='Admin', help='Last name')
@with_appcontext
def create_super_admin(email, password, first_name, last_name):
    """Create an active, verified super_admin account."""
    role = role_service.find_role_by_name(UserRole.SUPER_ADMIN)
    if not role:
        click.echo("FAIL super_admin role missing. Run 'flask system init' first.")
        return

    try:
        user = user_service.create_user(
            patch={
                "first_name": first_name,
                "last_name": last_name,
                "email": email.strip().lower(),
                "role_id": role.id,
                "status": UserStatus.ACTIVE,
                "is_email_verified": True,
            },
            password=password,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL {e}")
        for msg in e.errors:
            click.echo(f"  - {msg}")
        return
    except (ConflictError, ValidationError) as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created super admin {user.email} (ID: {user.id})")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', help='Filter by role name')
@click.option('--module', help='Filter by module')
@with_appcontext
def list_permissions_cli(role, module):
    """List permissions, optionally only those granted to a role or in a module."""
    if role:
        role_obj = role_service.find_role_by_name(role)
        if not role_obj:
            click.echo(f"FAIL Role '{role}' not found")
            return
        perms = sorted(role_obj.permissions, key=lambda p: p.name)
        header = f"Permissions for role: {role}"
    else:
        query = db.session.query(Permission).filter(Permission.deleted_at.is_(None))
        if module:
            query = query.filter(Permission.module == module)
        perms = query.order_by(Permission.module.asc(), Permission.action.asc()).all()
        header = f"Permissions in module: {module}" if module else "All permissions"

    click.echo(f"\n{'='*80}")
    click.echo(header)
    click.echo(f"{'='*80}\n")
    click.echo(f"{'Name':<30} {'Display name':<35} {'Active'}")
    click.echo("-"*80)
    for perm in perms:
        active_str = "Yes" if perm.grants else "No"
        click.echo(f"{perm.name:<30} {perm.display_name:<35} {active_str}")
    click.echo(f"\n Total: {len(perms)} permissions\n")


@perms_group.command('check')
@click.argument('email')
@click.argument('permission_name')
@with_appcontext
def check_permission_cli(email, permission_name):
    """Check whether a user holds a permission."""
    user = user_service.find_user_by_email(email.strip().lower())
    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return

    identity = authorization_service.identity_for_user(user)
    if authorization_service.has_permission(identity, permission_name):
        click.echo(f"PASS {email} ({identity.role_name}) HAS {permission_name}")
    else:
        click.echo(f"FAIL {email} ({identity.role_name}) does NOT have {permission_name}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
