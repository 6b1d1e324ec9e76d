"""
zkgroups CLI - Command Line Interface for the group membership store

Main entry point for all CLI commands.
"""

import functools
import json
import logging

import click

from zkgroups.core.config import load_config
from zkgroups.core.errors import GroupsError
from zkgroups.utils.logger import setup_logging


def handle_errors(f):
    """Report store errors as CLI errors (exit code 1) instead of tracebacks."""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except GroupsError as e:
            raise click.ClickException(f"{type(e).__name__}: {e}") from e
    return wrapper


def _services(ctx):
    """Build the services lazily so `--help` never touches the database."""
    if "groups" not in ctx.obj:
        from zkgroups.core.groups import GroupsService
        from zkgroups.core.invites import InvitesService

        groups = GroupsService.from_config(ctx.obj["config"])
        ctx.obj["groups"] = groups
        ctx.obj["invites"] = InvitesService(groups.storage, ctx.obj["config"])
    return ctx.obj["groups"], ctx.obj["invites"]


def _echo_json(data):
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--config", "config_path", default=None, help="Path to a dotenv config file")
@click.option("--data-dir", default=None, help="Data directory (overrides config)")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, config_path, data_dir):
    """zkgroups - Groups of identity commitments with Merkle proofs"""
    overrides = {"data_dir": data_dir} if data_dir else {}
    try:
        config = load_config(config_path, **overrides)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    level = logging.DEBUG if debug else config.log_level
    try:
        setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Group Commands
# =============================================================================


@cli.group()
def group():
    """Group management commands"""
    pass


@group.command("create")
@click.option("--name", required=True, help="Unique group name")
@click.option("--description", default="", help="Group description")
@click.option("--tree-depth", type=int, default=None, help="Merkle tree depth")
@click.option("--admin", required=True, help="Admin identifier")
@click.pass_context
@handle_errors
def group_create(ctx, name, description, tree_depth, admin):
    """Create a new group"""
    groups, _ = _services(ctx)
    g = groups.create_group(
        {"name": name, "description": description, "tree_depth": tree_depth}, admin
    )
    click.echo(f"✓ Group created: {g.name}")
    click.echo(f"  Id: {g.group_id}")
    click.echo(f"  Tree depth: {g.tree_depth} (capacity {g.capacity})")


@group.command("list")
@click.option("--admin", default=None, help="Only groups owned by this admin")
@click.pass_context
@handle_errors
def group_list(ctx, admin):
    """List groups"""
    groups, _ = _services(ctx)
    result = groups.get_groups_by_admin(admin) if admin else groups.get_all_groups()
    if not result:
        click.echo("No groups found.")
        return
    for g in result:
        full = " [full]" if g.is_full else ""
        click.echo(f"  {g.name}: {len(g.members)}/{g.capacity} members (admin: {g.admin}){full}")


@group.command("show")
@click.argument("name")
@click.pass_context
@handle_errors
def group_show(ctx, name):
    """Show a group as JSON"""
    groups, _ = _services(ctx)
    g = groups.get_group(name)
    data = g.to_dict()
    data["root"] = str(groups.get_group_root(name))
    _echo_json(data)


@group.command("update")
@click.argument("name")
@click.option("--description", required=True, help="New description")
@click.option("--admin", required=True, help="Admin identifier")
@click.pass_context
@handle_errors
def group_update(ctx, name, description, admin):
    """Update a group's description"""
    groups, _ = _services(ctx)
    g = groups.update_group({"description": description}, name, admin)
    click.echo(f"✓ Group updated: {g.name}")


# =============================================================================
# Invite Commands
# =============================================================================


@cli.group()
def invite():
    """Invite commands"""
    pass


@invite.command("create")
@click.argument("group_name")
@click.option("--admin", required=True, help="Admin identifier")
@click.pass_context
@handle_errors
def invite_create(ctx, group_name, admin):
    """Issue an invite for a group"""
    _, invites = _services(ctx)
    inv = invites.create_invite({"group_name": group_name}, admin)
    click.echo(inv.code)


@invite.command("show")
@click.argument("code")
@click.pass_context
@handle_errors
def invite_show(ctx, code):
    """Show an invite as JSON"""
    _, invites = _services(ctx)
    _echo_json(invites.get_invite(code).to_dict())


# =============================================================================
# Member Commands
# =============================================================================


@cli.group()
def member():
    """Membership commands"""
    pass


@member.command("add")
@click.argument("group_name")
@click.argument("commitment")
@click.option("--invite", "invite_code", required=True, help="Invite code")
@click.pass_context
@handle_errors
def member_add(ctx, group_name, commitment, invite_code):
    """Add an identity commitment to a group"""
    groups, _ = _services(ctx)
    g = groups.add_member(group_name, commitment, invite_code)
    click.echo(f"✓ Member added to {g.name} ({len(g.members)}/{g.capacity})")


@member.command("check")
@click.argument("group_name")
@click.argument("commitment")
@click.pass_context
@handle_errors
def member_check(ctx, group_name, commitment):
    """Check whether a commitment belongs to a group"""
    groups, _ = _services(ctx)
    is_member = groups.is_group_member(group_name, commitment)
    click.echo("true" if is_member else "false")
    ctx.exit(0 if is_member else 2)


# =============================================================================
# Proof Commands
# =============================================================================


@cli.group()
def proof():
    """Merkle proof commands"""
    pass


@proof.command("generate")
@click.argument("group_name")
@click.argument("commitment")
@click.pass_context
@handle_errors
def proof_generate(ctx, group_name, commitment):
    """Generate a Merkle inclusion proof as JSON"""
    groups, _ = _services(ctx)
    _echo_json(groups.generate_merkle_proof(group_name, commitment).to_dict())


@proof.command("verify")
@click.argument("proof_file", type=click.File("r"))
@click.option("--group", "group_name", default=None, help="Also check against this group's root")
@click.pass_context
@handle_errors
def proof_verify(ctx, proof_file, group_name):
    """Verify a proof read from a JSON file ('-' for stdin)"""
    groups, _ = _services(ctx)
    try:
        data = json.load(proof_file)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON: {e}") from e
    if groups.verify_merkle_proof(data, group_name):
        click.echo("✓ Proof is valid")
    else:
        click.echo("✗ Proof is invalid")
        ctx.exit(1)


if __name__ == "__main__":
    cli()
