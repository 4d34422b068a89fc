"""CLI commands for inspecting and administering defense evaluations."""

from __future__ import annotations

from sqlalchemy.orm import Session

import viva.lib.cli as click
import viva.lib.json as json
from viva.core import di
from viva.evaluation import leaderboard, lifecycle
from viva.model import EvaluationID, GroupRanking, RankingTarget, ScheduleID, UserID, UserRole
from viva.storage import user as user_storage


@click.group("evaluation")
def evaluation():
    """Aggregate, rank and administer evaluations."""
    ...


@evaluation.command("aggregate")
@click.argument("schedule_id", type=click.KeyType(ScheduleID))
@di.inject
def aggregate(schedule_id: ScheduleID, session: Session = di.Provide["storage.persistent.session"]) -> None:
    """Print the composite scores of one defense as JSON."""
    with session.begin():
        result = leaderboard.schedule_aggregate(schedule_id, session=session)
    click.echo(json.dumps(result, indent=2))


@evaluation.command("rankings")
@click.argument("target", type=click.EnumType(RankingTarget))
@click.option("-n", "--limit", type=click.IntRange(min=1), default=None)
@click.option("--json", "as_json", is_flag=True, default=False, help="print the rows as JSON")
@di.inject
def rankings(
    target: RankingTarget,
    limit: int | None,
    as_json: bool,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Print the leaderboard for groups or students."""
    with session.begin():
        rows = leaderboard.rankings(target, limit, session=session)

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    for row in rows:
        pct = f"{row.percentage:6.2f}%" if row.percentage is not None else "     --"
        name = row.title if isinstance(row, GroupRanking) else row.name
        click.echo(f"{row.rank:>4}  {pct}  {row.submitted_evaluations:>3}  {name}")


@evaluation.command("assign-panel")
@click.argument("schedule_id", type=click.KeyType(ScheduleID))
@di.inject
def assign_panel(schedule_id: ScheduleID, session: Session = di.Provide["storage.persistent.session"]) -> None:
    """Create pending evaluations for every panelist of a defense."""
    with session.begin():
        created = lifecycle.bulk_assign(schedule_id, session=session)
    click.echo(f"Assigned {created} evaluation(s).")


@evaluation.command("unlock")
@click.argument("evaluation_id", type=click.KeyType(EvaluationID))
@click.option("--actor", "actor_id", type=click.KeyType(UserID), required=True, help="admin performing the unlock")
@click.option("--reason", "-r", required=True)
@di.inject
def unlock(
    evaluation_id: EvaluationID,
    actor_id: UserID,
    reason: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Return a locked evaluation to submitted, recording an audit entry."""
    with session.begin():
        actor = user_storage.get(actor_id, session=session)
        if actor is None or actor.role is not UserRole.Admin:
            raise click.ClickException(f"{actor_id} is not an admin")
        result = lifecycle.admin_unlock(evaluation_id, actor_id, reason, session=session)
    click.echo(f"Unlocked {result.evaluation_id}, now {result.status.value}.")
