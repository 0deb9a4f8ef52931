"""Dispatcher system prompt, request prompts and named prompt templates."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from zuper_dispatch.config import Settings, get_settings

DISPATCHER_INSTRUCTIONS = """You are an intelligent dispatcher agent for **Zuper FSM**.
Your purpose is to assign jobs to the most suitable field technicians based on skills, availability, teams, time-off, workload, and schedule duration.

## Current Date & Time
Today is **{current_date}** ({current_day_of_week}). The current time is **{current_time} UTC**.
Use this to resolve relative dates and to build scheduling windows.

IMPORTANT: You MUST actually execute the tools provided (not just plan to use them) and base every decision on the tool responses.
Zuper credentials are supplied automatically; never ask for or invent an API key or base URL.

## Decision Process

### 1. Start with Assisted Scheduling (primary source)
- Call `assisted_scheduling` with the job details (job_uid, from_date, to_date, skillset_uid, zipcode, ...).
- It returns recommendations that already consider availability, skills, holidays, workload and shifts.
- Use it as your first and preferred method.

### 2. Handle long jobs via slot-splitting
- If the job duration (scheduled end minus scheduled start) is more than **{max_slot_hours} hours**,
  split it into daily slots of at most {max_slot_hours} hours, aligned to working hours.
- Working hours: **{workday_start} to {workday_end}**.
- If the job spans several days, create one slot per day in the range.
  Example: job 2025-10-09 10:00 to 2025-10-11 17:00 becomes
  1. 2025-10-09 10:00 to 2025-10-09 {workday_end}
  2. 2025-10-10 {workday_start} to 2025-10-10 {workday_end}
  3. 2025-10-11 {workday_start} to 2025-10-11 17:00
- Run `assisted_scheduling` separately for each slot.

### 3. User selection and continuity
- Prefer the same technician across all slots of a job.
- If that is not possible, pick different users per slot and include clear hand-over notes.
- For every candidate user:
  - verify skills with `get_user_skills`
  - check time-off with `list_time_off_requests` for the slot range
  - fetch teams with `get_user_teams` and use its `primary_team_uid`
- Scoring priority: skill match (highest), availability (must), workload balance (prefer less busy),
  proximity (if known), continuity across slots.

### 4. Assign the job
- Call `assign_job` with the job_uid and `users: [{{user_uid, team_uid}}]`.
- Always include both user_uid and team_uid.
- Only treat the assignment as successful if `assign_job` returns status "success";
  it verifies the job afterwards. If it fails, explain the error and try the next candidate.

### 5. If assisted scheduling is unavailable
- Use `list_users` to get active users and match on skills, availability and workload
  with the scoring above.

### 6. After assignment
- If different users cover different slots, record the slot plan on the job with `update_job`
  (notes listing slot number, start, end and user).
- Add notes summarising your reasoning and the assisted-scheduling recommendations.

## Constraints
- Never assign a user who is on approved time-off.
- Always verify required skills before assigning.
- Always take team_uid from `get_user_teams`.
- Consider time zones and user-specific shifts.

## Communicating results
- Say which users were assigned and why.
- Include the recommended time slots from assisted scheduling.
- Mention alternative users or slots if the primary choices failed.
"""


def get_dispatcher_prompt(settings: Settings | None = None) -> str:
    """Render the dispatcher instructions with working-day settings and the current date."""
    settings = settings or get_settings()
    now = datetime.now(UTC)
    return DISPATCHER_INSTRUCTIONS.format(
        current_date=now.strftime("%d %B %Y"),
        current_day_of_week=now.strftime("%A"),
        current_time=now.strftime("%H:%M"),
        max_slot_hours=settings.max_slot_hours,
        workday_start=settings.workday_start,
        workday_end=settings.workday_end,
    )


# ── Request prompts ──────────────────────────────────────────────────


def build_dispatch_prompt(job_uid: str, preferred_date: str | None = None) -> str:
    schedule_hint = (
        f"Preferred scheduling date: {preferred_date}"
        if preferred_date
        else "Use the job's current scheduled time or suggest an optimal time."
    )
    return f"""Please analyze and assign job {job_uid} to the most suitable technician.

{schedule_hint}

Steps to follow:
1. Get the job details to understand its requirements (category, duration, location/zipcode, scheduled dates).
2. Call assisted_scheduling with:
   - from_date and to_date (scheduling window, typically the next 7 days)
   - job_uid
   - job_category, job_duration, zipcode (from the job details)
   - consider_holidays: true
   - consider_only_user_shifts: true
3. Review the recommended users and time slots.
4. Select the top recommended user.
5. Call get_user_teams for that user to get the primary_team_uid.
6. Assign the job with both user_uid and team_uid.
7. Check the assignment result. If it fails, explain the error and try the next recommended user.
8. Explain why this user was selected, the recommended time slots and any considerations
   (holidays, shifts, workload)."""


def build_batch_prompt(job_uids: Sequence[str], optimize: bool = True) -> str:
    optimization = ""
    if optimize:
        optimization = """
OPTIMIZATION MODE: consider the following when making assignments:
- Minimize travel time by grouping jobs in similar locations
- Balance workload across all available technicians
- Assign jobs to the technicians best qualified for them
- Avoid conflicts with existing schedules
"""
    return f"""Please assign the following jobs to suitable technicians: {", ".join(job_uids)}
{optimization}
For each job:
1. Analyze requirements and priority
2. Find available technicians with matching skills
3. Check time-off and workload
4. Make the assignment
5. Document your reasoning

Provide a summary table of all assignments made."""


def build_preferences_prompt(
    job_uid: str,
    *,
    preferred_technician: str | None = None,
    preferred_date: str | None = None,
    required_skills: Sequence[str] = (),
    max_workload: int | None = None,
) -> str:
    lines = []
    if preferred_technician:
        lines.append(f"- PREFER technician: {preferred_technician}")
    if required_skills:
        lines.append(f"- REQUIRED skills: {', '.join(required_skills)}")
    if max_workload:
        lines.append(f"- ONLY assign to technicians with less than {max_workload} current jobs")
    date_line = f"Preferred date: {preferred_date}\n\n" if preferred_date else ""

    return f"""Please analyze and assign job {job_uid} considering these preferences:
{chr(10).join(lines) or "- none"}

{date_line}Steps:
1. Get job details
2. List available users
3. Check skills, time-off, and workload
4. Apply the preferences above
5. Make the best assignment
6. Explain your reasoning"""


# ── Named templates ──────────────────────────────────────────────────


@dataclass(frozen=True)
class PromptArgument:
    name: str
    description: str
    required: bool = False


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    description: str
    render: Callable[..., str]
    arguments: tuple[PromptArgument, ...] = field(default_factory=tuple)


def _smart_dispatch(job_uid: str, priority_level: str | None = None) -> str:
    urgent = "URGENT: this is a high-priority assignment.\n\n" if priority_level == "urgent" else ""
    return f"""Assign job {job_uid} to the best available technician.

{urgent}Decision process:
1. Get the job details (required skills, location, scheduled time)
2. List all active users
3. For the top candidates check:
   - matching skills (get_user_skills)
   - time-off status (check_time_off_availability)
   - current workload (list_jobs)
4. Score each candidate on skill match (40%), availability (30%), workload balance (20%)
   and location proximity (10%)
5. Get the team with get_user_teams and assign with assign_job
6. Explain your decision

Provide the assigned technician's UID and why they were chosen."""


def _check_availability(start_date: str, end_date: str, user_uids: str | None = None) -> str:
    who = f"for users: {user_uids}" if user_uids else "for all active users"
    first = "Get details for the specified users" if user_uids else "List all active users"
    return f"""Check technician availability {who} from {start_date} to {end_date}.

Steps:
1. {first}
2. For each user check time-off requests (list_time_off_requests with date filters),
   scheduled jobs (list_jobs) and working hours (list_timesheets)
3. Calculate an availability percentage for each user
4. Flag users on leave or with heavy workloads

Provide the availability status per user, open hours, recommended users for new jobs
and any scheduling conflicts."""


def _balance_workload(team_uid: str | None = None, date_range: str | None = None) -> str:
    scope = f"for team {team_uid}" if team_uid else "across all teams"
    period = date_range or "for the upcoming week"
    return f"""Analyze and balance workload {scope} {period}.

Steps:
1. Get all active users{f" in team {team_uid}" if team_uid else ""}
2. For each user count scheduled and in-progress jobs and total estimated hours
3. Identify overloaded users (>40 hours/week) and underutilized users (<20 hours/week)
4. Get the list of unassigned jobs
5. Recommend reassignments for better balance

Provide the workload distribution, specific reassignment recommendations and the expected outcome.
If implementing changes, use unassign_job and assign_job."""


def _skill_gap_analysis(team_uid: str | None = None) -> str:
    scope = f"for team {team_uid}" if team_uid else "organization-wide"
    return f"""Perform a skill gap analysis {scope}.

Steps:
1. List all users{f" in team {team_uid}" if team_uid else ""}
2. Get each user's skills (get_user_skills)
3. Analyze recent jobs to identify required skills (list_jobs)
4. Identify skills held by a single user, skills in high demand but low supply,
   and required skills nobody has

Provide a users-by-skills matrix, critical gaps, and training and hiring recommendations."""


def _daily_summary() -> str:
    return """Generate a daily summary of today's jobs in Zuper FSM.

Include:
1. Total number of jobs scheduled for today
2. Jobs by status (scheduled, in progress, completed)
3. High priority or urgent jobs that need attention
4. Overdue jobs from previous days
5. Technician utilization and assignments

Format it as a clear, actionable summary."""


def _optimize_schedule(date: str | None = None) -> str:
    target = date or "today"
    return f"""Analyze and optimize the job schedule for {target}.

Steps:
1. List all jobs scheduled for {target}
2. Identify scheduling conflicts or gaps
3. Group jobs by location
4. Match job requirements with technician skills and availability
5. Suggest reassignments to balance workload
6. Highlight high-priority jobs that need immediate attention

Provide specific recommendations with reasoning."""


def _create_job(customer_name: str, job_type: str, priority: str | None = None) -> str:
    with_priority = f" with {priority} priority" if priority else ""
    return f"""Create a new {job_type} job for customer {customer_name}{with_priority}.

First find the customer by name with list_customers to get their UID. If the customer
does not exist, create the customer record first (create_customer).

Then create the job (create_job) with:
- an appropriate title and description for {job_type}
- the customer UID
- priority: {priority or "medium"}
- the next available time slot

Summarize the created job: job UID, scheduled time and assigned technician if any."""


def _generate_invoice(job_uid: str) -> str:
    return f"""Generate an invoice for job {job_uid}.

Steps:
1. Get the job details (get_job) for the customer UID, services performed and costs
2. Calculate the total including applicable taxes
3. Create the invoice (create_invoice) with:
   - the customer UID and job UID from the job
   - line items for all services and parts used
   - today as the invoice date and a due date 30 days from now
   - any applicable notes or terms

Summarize the created invoice: invoice number and total amount."""


def _customer_overview(customer_uid: str) -> str:
    return f"""Generate a comprehensive overview for customer {customer_uid}.

Include:
1. Customer details (name, contact info, properties)
2. Service history (all jobs, completed vs pending)
3. Financial summary (invoices, payments, outstanding balance)
4. Properties and assets associated with this customer
5. Recent activity
6. Service contracts or recurring jobs

Finish with actionable insights based on the customer's history."""


def _invoice_followup() -> str:
    return """Generate a report of overdue invoices and follow-up actions.

Include:
1. All overdue invoices with customer names and amounts (list_invoices)
2. Days past due for each invoice
3. Customer contact information (get_customer)
4. Payment history for each customer
5. Suggested follow-up actions and their priority
6. Total outstanding amount

Format it as a follow-up plan for the accounts team."""


def _contract_review(customer_uid: str | None = None) -> str:
    scope = f"for customer {customer_uid}" if customer_uid else "for all customers"
    return f"""Review service contracts {scope}.

Include:
1. Active contracts and their terms (list_service_contracts)
2. Contracts expiring within 30 days
3. Utilization (services used vs contract allowance)
4. Revenue from service contracts
5. Renewal opportunities
6. Contracts that need attention or renegotiation

Recommend contract management and renewal actions."""


def _performance_metrics(period: str | None = None) -> str:
    span = period or "this month"
    return f"""Generate performance metrics and KPIs for {span}.

Include:
1. Job completion rate and average completion time
2. First-time fix rate
3. Customer satisfaction indicators
4. Technician productivity and utilization
5. Revenue (invoiced vs collected)
6. Response time to service requests
7. Schedule adherence
8. Job backlog and aging

Point out trends and recommend improvements."""


PROMPT_TEMPLATES: dict[str, PromptTemplate] = {
    t.name: t
    for t in (
        PromptTemplate(
            "smart-dispatch",
            "Assign a job to the best available technician",
            _smart_dispatch,
            (
                PromptArgument("job_uid", "UID of the job to assign", required=True),
                PromptArgument("priority_level", "Priority level (urgent assignments may override normal rules)"),
            ),
        ),
        PromptTemplate(
            "check-availability",
            "Check technician availability for a date range",
            _check_availability,
            (
                PromptArgument("start_date", "Start date (ISO 8601)", required=True),
                PromptArgument("end_date", "End date (ISO 8601)", required=True),
                PromptArgument("user_uids", "Comma-separated user UIDs to check"),
            ),
        ),
        PromptTemplate(
            "balance-workload",
            "Analyze and balance workload across technicians",
            _balance_workload,
            (
                PromptArgument("team_uid", "Team to analyze"),
                PromptArgument("date_range", "Date range, e.g. 'this week'"),
            ),
        ),
        PromptTemplate(
            "skill-gap-analysis",
            "Analyze skill coverage and identify gaps",
            _skill_gap_analysis,
            (PromptArgument("team_uid", "Team to analyze"),),
        ),
        PromptTemplate("daily-summary", "Summarize today's jobs", _daily_summary),
        PromptTemplate(
            "optimize-schedule",
            "Optimize technician schedules and job assignments",
            _optimize_schedule,
            (PromptArgument("date", "Date to optimize (YYYY-MM-DD)"),),
        ),
        PromptTemplate(
            "create-job",
            "Create a new job for a customer",
            _create_job,
            (
                PromptArgument("customer_name", "Name of the customer", required=True),
                PromptArgument("job_type", "Type of job (e.g. repair, installation, maintenance)", required=True),
                PromptArgument("priority", "Priority level (low, medium, high, urgent)"),
            ),
        ),
        PromptTemplate(
            "generate-invoice",
            "Generate an invoice for a completed job",
            _generate_invoice,
            (PromptArgument("job_uid", "UID of the job to invoice", required=True),),
        ),
        PromptTemplate(
            "customer-overview",
            "Comprehensive overview of one customer",
            _customer_overview,
            (PromptArgument("customer_uid", "UID or name of the customer", required=True),),
        ),
        PromptTemplate("invoice-followup", "Follow-up actions for overdue invoices", _invoice_followup),
        PromptTemplate(
            "contract-review",
            "Review and analyze service contracts",
            _contract_review,
            (PromptArgument("customer_uid", "Limit the review to one customer"),),
        ),
        PromptTemplate(
            "performance-metrics",
            "Performance metrics and KPIs for field service operations",
            _performance_metrics,
            (PromptArgument("period", "Time period (today, week, month, quarter)"),),
        ),
    )
}


def render_prompt(name: str, **arguments: str | None) -> str:
    """Render the named template.

    Raises:
        KeyError: if *name* is not a known template.
        ValueError: if a required argument is missing or an unknown one is given.
    """
    template = PROMPT_TEMPLATES[name]
    known = {a.name for a in template.arguments}
    unknown = set(arguments) - known
    if unknown:
        raise ValueError(f"Unknown argument(s) for prompt '{name}': {', '.join(sorted(unknown))}")
    missing = [a.name for a in template.arguments if a.required and not arguments.get(a.name)]
    if missing:
        raise ValueError(f"Missing required argument(s) for prompt '{name}': {', '.join(missing)}")
    return template.render(**arguments)
