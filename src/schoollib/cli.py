"""Command-line interface for schoollib.

Built with Typer for commands and Rich for output.
"""

import logging
from collections import Counter
from datetime import date, timedelta
from pathlib import Path
from typing import Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import get_config
from .db import get_db
from .db.schemas import (
    BookCreate,
    BookFormat,
    BookUpdate,
    ClassSectorCreate,
    UserCreate,
    UserRole,
    UserType,
    UserUpdate,
)
from .errors import LibraryError

# Create the main app
app = typer.Typer(
    name="schoollib",
    help="Manage a school library: catalog, users, loans and notifications.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
book_app = typer.Typer(help="Manage the book catalog.")
app.add_typer(book_app, name="book")
user_app = typer.Typer(help="Manage library users.")
app.add_typer(user_app, name="user")
loan_app = typer.Typer(help="Check books out and record returns.")
app.add_typer(loan_app, name="loan")
notify_app = typer.Typer(help="Due-date reminders and overdue notices.")
app.add_typer(notify_app, name="notify")
asset_app = typer.Typer(help="Manage digital asset links.")
app.add_typer(asset_app, name="asset")
class_app = typer.Typer(help="Manage school classes and sectors.")
app.add_typer(class_app, name="class")

# Rich console for pretty output
console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging before any command runs."""
    config = get_config()
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    logging.getLogger().setLevel(level)


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD option value."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid date '{value}', expected YYYY-MM-DD")


def resolve_user(ref: str):
    """Find a user by ID or email."""
    db = get_db()
    user = db.get_user(ref) if "@" not in ref else None
    return user or db.get_user_by_email(ref)


def warn_unregistered_class(name: str) -> None:
    """Warn when a class/sector name is not in the registry."""
    db = get_db()
    if db.list_classes() and not db.get_class_by_name(name):
        print_warning(f"'{name}' is not a registered class or sector")


def format_status(loan, today: date) -> str:
    """Colored effective status of a loan."""
    from .lending import LoanStatus

    status = loan.effective_status(today)
    if status == LoanStatus.OVERDUE:
        return f"[bold red]OVERDUE ({loan.days_overdue(today)}d)[/bold red]"
    if status == LoanStatus.RETURNED:
        return "[dim]returned[/dim]"
    return f"[green]borrowed ({loan.days_until_due(today)}d)[/green]"


def format_loan_table(loans: list, title: str = "Loans") -> Table:
    """Create a rich table for displaying loans."""
    db = get_db()
    today = date.today()

    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Book", style="cyan", max_width=30)
    table.add_column("User")
    table.add_column("Loaned")
    table.add_column("Due")
    table.add_column("Returned")
    table.add_column("Status")

    for loan in loans:
        book = db.get_book(loan.book_id)
        user = db.get_user(loan.user_id)
        table.add_row(
            loan.id,
            book.title if book else "Unknown",
            user.name if user else "Unknown",
            loan.loan_date,
            loan.due_date,
            loan.return_date or "-",
            format_status(loan, today),
        )

    return table


# ============================================================================
# Book Commands
# ============================================================================


@book_app.command("add")
def book_add(
    title: str = typer.Option(..., "--title", "-t", help="Book title"),
    author: str = typer.Option(..., "--author", "-a", help="Author name"),
    quantity: int = typer.Option(1, "--quantity", "-q", help="Number of copies owned"),
    category: str = typer.Option("General", "--category", "-c", help="Literary genre"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i", help="ISBN"),
    book_format: BookFormat = typer.Option(BookFormat.BOOK, "--format", "-f", help="Physical format"),
    publisher: Optional[str] = typer.Option(None, "--publisher", help="Publisher"),
    year: Optional[str] = typer.Option(None, "--year", "-y", help="Publication year"),
    shelf: Optional[str] = typer.Option(None, "--shelf", help="Bookcase"),
    shelf_location: Optional[str] = typer.Option(None, "--shelf-location", help="Shelf within the bookcase"),
) -> None:
    """Add a book to the catalog."""
    try:
        data = BookCreate(
            title=title,
            author=author,
            quantity=quantity,
            category=category,
            isbn=isbn,
            format=book_format,
            publisher=publisher,
            year=year,
            shelf=shelf,
            shelf_location=shelf_location,
        )
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    book = get_db().create_book(data)
    print_success(f"Added: {book.title} by {book.author} ({book.quantity} copies)")
    console.print(f"[dim]ID: {book.id}[/dim]")


@book_app.command("list")
def book_list(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Filter by category"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Search title, author or ISBN"),
) -> None:
    """List books with their availability."""
    db = get_db()
    books = db.search_books(search, limit=1000) if search else db.list_books(category=category)

    if not books:
        console.print("[dim]No books found[/dim]")
        return

    table = Table(title="Books", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Category", style="yellow")
    table.add_column("Available", justify="right")

    for book in books:
        color = "red" if book.available == 0 else "green"
        table.add_row(
            book.id,
            book.title,
            book.author,
            book.category,
            f"[{color}]{book.available}/{book.quantity}[/{color}]",
        )

    console.print(table)
    console.print(f"[dim]{len(books)} of {db.count_books()} books[/dim]")


@book_app.command("show")
def book_show(
    book_id: str = typer.Argument(..., help="Book ID"),
) -> None:
    """Show a book and its loan history."""
    from .lending import LendingManager

    db = get_db()
    book = db.get_book(book_id)
    if not book:
        print_error(f"Book not found: {book_id}")
        raise typer.Exit(1)

    lines = [
        f"[bold]{book.title}[/bold]",
        f"Author: {book.author}",
        f"Category: {book.category}  Format: {book.format}",
    ]
    if book.isbn:
        lines.append(f"ISBN: {book.isbn}")
    if book.shelf or book.shelf_location:
        lines.append(f"Shelf: {book.shelf or '-'} / {book.shelf_location or '-'}")
    lines.append(f"Copies: {book.available} available of {book.quantity}")
    console.print(Panel("\n".join(lines), style="cyan"))

    loans = LendingManager(db).get_loan_history_for_book(book_id)
    if loans:
        console.print(format_loan_table(loans, title="Loan History"))


@book_app.command("update")
def book_update(
    book_id: str = typer.Argument(..., help="Book ID"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Book title"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Author name"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Literary genre"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i", help="ISBN"),
    book_format: Optional[BookFormat] = typer.Option(None, "--format", "-f", help="Physical format"),
    publisher: Optional[str] = typer.Option(None, "--publisher", help="Publisher"),
    year: Optional[str] = typer.Option(None, "--year", "-y", help="Publication year"),
    shelf: Optional[str] = typer.Option(None, "--shelf", help="Bookcase"),
    shelf_location: Optional[str] = typer.Option(None, "--shelf-location", help="Shelf within the bookcase"),
) -> None:
    """Edit book details. Use set-quantity to change the number of copies."""
    changes = {
        "title": title,
        "author": author,
        "category": category,
        "isbn": isbn,
        "format": book_format,
        "publisher": publisher,
        "year": year,
        "shelf": shelf,
        "shelf_location": shelf_location,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        print_warning("Nothing to update")
        return

    try:
        book = get_db().update_book(book_id, BookUpdate(**changes))
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not book:
        print_error(f"Book not found: {book_id}")
        raise typer.Exit(1)
    print_success(f"Updated: {book.title} by {book.author}")


@book_app.command("delete")
def book_delete(
    book_id: str = typer.Argument(..., help="Book ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete a book from the catalog."""
    db = get_db()
    book = db.get_book(book_id)
    if not book:
        print_error(f"Book not found: {book_id}")
        raise typer.Exit(1)

    if not force:
        if not typer.confirm(f"Delete '{book.title}'?"):
            console.print("[dim]Cancelled.[/dim]")
            return

    try:
        db.delete_book(book_id)
    except LibraryError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"Deleted: {book.title}")


@book_app.command("set-quantity")
def book_set_quantity(
    book_id: str = typer.Argument(..., help="Book ID"),
    quantity: int = typer.Argument(..., help="New number of copies owned"),
) -> None:
    """Change how many copies of a book the library owns."""
    from .inventory import InventoryStore

    try:
        book = InventoryStore(get_db()).set_quantity(book_id, quantity)
    except (LibraryError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"{book.title}: {book.available} available of {book.quantity}")


@book_app.command("check")
def book_check() -> None:
    """Check copy counts against open loans."""
    from .inventory import InventoryStore

    discrepancies = InventoryStore(get_db()).check_consistency()
    if not discrepancies:
        print_success("Copy counts match the loan ledger")
        return

    table = Table(title="Inventory Mismatches", show_header=True, header_style="bold red")
    table.add_column("Book", style="cyan")
    table.add_column("Quantity", justify="right")
    table.add_column("Available", justify="right")
    table.add_column("Open Loans", justify="right")
    table.add_column("Expected", justify="right")
    for item in discrepancies:
        table.add_row(
            item.title,
            str(item.quantity),
            str(item.available),
            str(item.open_loans),
            str(item.expected_available),
        )
    console.print(table)
    raise typer.Exit(1)


# ============================================================================
# User Commands
# ============================================================================


@user_app.command("add")
def user_add(
    name: str = typer.Argument(..., help="Full name"),
    email: str = typer.Argument(..., help="Email address"),
    user_type: UserType = typer.Option(UserType.STUDENT, "--type", "-t", help="student, teacher or staff"),
    role: UserRole = typer.Option(UserRole.USER, "--role", "-r", help="user or admin"),
    phone: Optional[str] = typer.Option(None, "--phone", "-p", help="Phone number"),
    sector_or_class: Optional[str] = typer.Option(None, "--class", "-c", help="Class or sector"),
) -> None:
    """Register a library user."""
    try:
        data = UserCreate(
            name=name,
            email=email,
            user_type=user_type,
            role=role,
            phone=phone,
            sector_or_class=sector_or_class,
        )
        user = get_db().create_user(data)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Registered: {user.name} <{user.email}>")
    console.print(f"[dim]ID: {user.id}[/dim]")
    if sector_or_class:
        warn_unregistered_class(sector_or_class)


@user_app.command("update")
def user_update(
    ref: str = typer.Argument(..., help="User ID or email"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Full name"),
    user_type: Optional[UserType] = typer.Option(None, "--type", "-t", help="student, teacher or staff"),
    role: Optional[UserRole] = typer.Option(None, "--role", "-r", help="user or admin"),
    phone: Optional[str] = typer.Option(None, "--phone", "-p", help="Phone number"),
    sector_or_class: Optional[str] = typer.Option(None, "--class", "-c", help="Class or sector"),
) -> None:
    """Edit a library user."""
    user = resolve_user(ref)
    if not user:
        print_error(f"User not found: {ref}")
        raise typer.Exit(1)

    changes = {
        "name": name,
        "user_type": user_type,
        "role": role,
        "phone": phone,
        "sector_or_class": sector_or_class,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        print_warning("Nothing to update")
        return

    try:
        updated = get_db().update_user(user.id, UserUpdate(**changes))
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Updated: {updated.name}")
    if sector_or_class:
        warn_unregistered_class(sector_or_class)


@user_app.command("import")
def user_import(
    file: Path = typer.Argument(..., help="Text file with one 'Name; Email; Phone' per line"),
    sector_or_class: Optional[str] = typer.Option(None, "--class", "-c", help="Registered class or sector"),
) -> None:
    """Register many students at once."""
    if not file.exists():
        print_error(f"File not found: {file}")
        raise typer.Exit(1)

    db = get_db()
    class_name = None
    if sector_or_class:
        registered = db.get_class_by_name(sector_or_class)
        if not registered:
            print_error(f"Class not found: {sector_or_class}")
            console.print("[dim]Register it first with 'schoollib class add'[/dim]")
            raise typer.Exit(1)
        class_name = registered.name

    result = db.import_users(file.read_text(encoding="utf-8").splitlines(), class_name)

    for message in result.error_messages:
        print_warning(message)

    if not result.imported:
        print_error("No valid lines found. Use the format: Name; Email; Phone")
        raise typer.Exit(1)

    print_success(f"{result.imported} users registered ({result.summary})")


@user_app.command("list")
def user_list(
    user_type: Optional[UserType] = typer.Option(None, "--type", "-t", help="Filter by type"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Search name, email or class"),
) -> None:
    """List library users."""
    db = get_db()
    users = db.list_users(user_type=user_type, search=search)

    if not users:
        console.print("[dim]No users found[/dim]")
        return

    table = Table(title="Users", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Email")
    table.add_column("Type")
    table.add_column("Class/Sector")
    table.add_column("Role")

    for user in users:
        table.add_row(
            user.id,
            user.name,
            user.email,
            user.user_type,
            user.sector_or_class or "-",
            "[bold]admin[/bold]" if user.is_admin else "user",
        )

    console.print(table)
    console.print(f"[dim]{len(users)} of {db.count_users()} users[/dim]")


@user_app.command("delete")
def user_delete(
    ref: str = typer.Argument(..., help="User ID or email"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete a library user."""
    user = resolve_user(ref)
    if not user:
        print_error(f"User not found: {ref}")
        raise typer.Exit(1)

    if not force:
        if not typer.confirm(f"Delete user '{user.name}'?"):
            console.print("[dim]Cancelled.[/dim]")
            return

    try:
        get_db().delete_user(user.id)
    except LibraryError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"Deleted: {user.name}")


# ============================================================================
# Loan Commands
# ============================================================================


@loan_app.command("checkout")
def loan_checkout(
    user_ref: str = typer.Argument(..., help="User ID or email"),
    book_id: str = typer.Argument(..., help="Book ID"),
    due: Optional[str] = typer.Option(None, "--due", "-d", help="Due date (YYYY-MM-DD)"),
    days: Optional[int] = typer.Option(None, "--days", help="Loan period in days"),
) -> None:
    """Lend a book to a user."""
    from .lending import LendingManager, LoanCreate

    user = resolve_user(user_ref)
    if not user:
        print_error(f"User not found: {user_ref}")
        raise typer.Exit(1)

    loan_date = date.today()
    if due:
        due_date = parse_date(due)
    else:
        period = days if days is not None else get_config().default_loan_days
        due_date = loan_date + timedelta(days=period)

    try:
        data = LoanCreate(
            user_id=UUID(user.id),
            book_id=UUID(book_id),
            loan_date=loan_date,
            due_date=due_date,
        )
        loan = LendingManager(get_db()).checkout(data)
    except (LibraryError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Book lent to {user.name}, due {loan.due_date}")
    console.print(f"[dim]Loan ID: {loan.id}[/dim]")


@loan_app.command("return")
def loan_return(
    loan_id: str = typer.Argument(..., help="Loan ID to return"),
) -> None:
    """Mark a loan as returned."""
    from .lending import LendingManager

    try:
        loan = LendingManager(get_db()).return_loan(loan_id)
    except LibraryError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Loan marked as returned on {loan.return_date}")


@loan_app.command("list")
def loan_list(
    user_ref: Optional[str] = typer.Option(None, "--user", "-u", help="User ID or email"),
    book_id: Optional[str] = typer.Option(None, "--book", "-b", help="Book ID"),
    overdue: bool = typer.Option(False, "--overdue", "-o", help="Show only overdue loans"),
    active: bool = typer.Option(False, "--active", "-a", help="Show only loans not yet returned"),
) -> None:
    """List loan records."""
    from .lending import LendingManager

    user_id = None
    if user_ref:
        user = resolve_user(user_ref)
        if not user:
            print_error(f"User not found: {user_ref}")
            raise typer.Exit(1)
        user_id = user.id

    loans = LendingManager(get_db()).list_loans(
        user_id=user_id,
        book_id=book_id,
        overdue_only=overdue,
    )
    if active:
        loans = [loan for loan in loans if not loan.is_returned]

    if not loans:
        console.print("[dim]No loans found[/dim]")
        return

    console.print(format_loan_table(loans))


@loan_app.command("overdue")
def loan_overdue() -> None:
    """Show overdue loans."""
    from .lending import LendingManager

    report = LendingManager(get_db()).get_overdue_loans()

    if not report.loans:
        print_success("No overdue loans!")
        return

    console.print(Panel(
        f"[bold red]Overdue Loans: {report.total_overdue}[/bold red]\n"
        f"Oldest: {report.oldest_overdue_days} days overdue",
        style="red",
    ))

    table = Table(show_header=True, header_style="bold red")
    table.add_column("Book", style="cyan")
    table.add_column("User")
    table.add_column("Due Date")
    table.add_column("Days Overdue", justify="right")

    for loan in report.loans:
        table.add_row(
            loan.book_title,
            loan.user_name,
            loan.due_date.isoformat(),
            f"[bold red]{loan.days_overdue}[/bold red]",
        )

    console.print(table)


@loan_app.command("due-soon")
def loan_due_soon(
    days: int = typer.Option(7, "--days", "-d", help="Days to look ahead"),
) -> None:
    """Show loans due soon."""
    from .lending import LendingManager

    db = get_db()
    manager = LendingManager(db)
    loans = manager.get_loans_due_soon(days=days)

    if not loans:
        console.print(f"[dim]No loans due in the next {days} days[/dim]")
        return

    console.print(f"[bold]Loans due in the next {days} days:[/bold]")

    today = manager.today()
    for loan in loans:
        book = db.get_book(loan.book_id)
        user = db.get_user(loan.user_id)

        days_left = loan.days_until_due(today)
        if days_left <= 1:
            urgency = "[bold red]"
        elif days_left <= 3:
            urgency = "[yellow]"
        else:
            urgency = "[green]"

        console.print(
            f"  {urgency}{loan.due_date}[/]: "
            f"{book.title if book else 'Unknown'} "
            f"({user.name if user else 'Unknown'})"
        )


@loan_app.command("stats")
def loan_stats(
    year: Optional[int] = typer.Option(None, "--year", help="Year of the monthly chart (default: current)"),
) -> None:
    """Show dashboard statistics."""
    import calendar

    from .lending import LendingManager

    manager = LendingManager(get_db())
    stats = manager.get_stats()

    console.print(Panel("[bold]Library Statistics[/bold]", style="cyan"))

    console.print("\n[bold]Catalog:[/bold]")
    console.print(f"  Books: {stats.total_books}")
    console.print(f"  Copies: {stats.available_copies} available of {stats.total_copies}")
    console.print(f"  Digital assets: {stats.total_assets}")

    console.print("\n[bold]Loans:[/bold]")
    console.print(f"  Active: {stats.active_loans}")
    if stats.overdue_loans > 0:
        console.print(f"  [red]Overdue: {stats.overdue_loans}[/red]")
    console.print(f"  Returned: {stats.returned_loans}")

    console.print(f"\n[bold]Users:[/bold] {stats.total_users}")

    chart_year = year or manager.today().year
    counts = manager.get_monthly_loan_counts(chart_year)
    console.print(f"\n[bold]Loans per month ({chart_year}):[/bold]")
    for month, count in enumerate(counts, start=1):
        bar = "█" * count if count else "░"
        console.print(f"  {calendar.month_abbr[month]}: {bar} {count}")


@loan_app.command("report")
def loan_report(
    start: Optional[str] = typer.Option(None, "--from", help="First loan date (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, "--to", help="Last loan date (YYYY-MM-DD)"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Book category"),
) -> None:
    """Summarize loans for a period."""
    from .lending import LendingManager

    report = LendingManager(get_db()).get_report(
        start=parse_date(start) if start else None,
        end=parse_date(end) if end else None,
        category=category,
    )

    period = f"{report.start or 'beginning'} to {report.end or 'today'}"
    console.print(Panel(f"[bold]Loan Report[/bold]\n{period}", style="cyan"))
    console.print(f"  Total loans: {report.total_loans}")
    console.print(f"  Returned: {report.returned}")
    console.print(f"  [red]Overdue: {report.overdue}[/red]")
    console.print(f"  Active (on time): {report.active_on_time}")

    if report.top_books:
        table = Table(title="Most Borrowed", show_header=True, header_style="bold magenta")
        table.add_column("Title", style="cyan")
        table.add_column("Loans", justify="right")
        for item in report.top_books:
            table.add_row(item.title, str(item.count))
        console.print(table)


# ============================================================================
# Notification Commands
# ============================================================================


def _notification_manager():
    from .notifications import NotificationManager

    return NotificationManager(get_db(), due_soon_days=get_config().due_soon_days)


@notify_app.command("check")
def notify_check() -> None:
    """Generate today's reminders and overdue notices."""
    manager = _notification_manager()
    created = manager.check_loans()
    total = len(manager.list_notifications())
    if created:
        print_success(f"{len(created)} new notifications ({total} total)")
    else:
        console.print(f"[dim]No new notifications ({total} total)[/dim]")


@notify_app.command("list")
def notify_list(
    user_ref: Optional[str] = typer.Option(None, "--user", "-u", help="Only what this user sees"),
    unread: bool = typer.Option(False, "--unread", help="Only unread notifications"),
) -> None:
    """List notifications."""
    user = None
    if user_ref:
        user = resolve_user(user_ref)
        if not user:
            print_error(f"User not found: {user_ref}")
            raise typer.Exit(1)

    notifications = _notification_manager().list_notifications(user, unread_only=unread)

    if not notifications:
        console.print("[dim]No notifications[/dim]")
        return

    colors = {"danger": "red", "warning": "yellow", "info": "blue"}
    for n in notifications:
        color = colors.get(n.severity, "white")
        marker = " " if n.is_read else "*"
        console.print(f"{marker} [{color}]{n.date} {n.title}[/{color}]: {n.message}")
        console.print(f"  [dim]{n.id}[/dim]")


@notify_app.command("read")
def notify_read(
    notification_id: str = typer.Argument(..., help="Notification ID"),
) -> None:
    """Mark a notification as read."""
    try:
        _notification_manager().mark_read(notification_id)
    except LibraryError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success("Notification marked as read")


@notify_app.command("read-all")
def notify_read_all(
    user_ref: Optional[str] = typer.Option(None, "--user", "-u", help="Only what this user sees"),
) -> None:
    """Mark all notifications as read."""
    user = resolve_user(user_ref) if user_ref else None
    if user_ref and not user:
        print_error(f"User not found: {user_ref}")
        raise typer.Exit(1)

    count = _notification_manager().mark_all_read(user)
    print_success(f"{count} notifications marked as read")


# ============================================================================
# Digital Asset Commands
# ============================================================================


@asset_app.command("add")
def asset_add(
    title: str = typer.Argument(..., help="Asset title"),
    url: str = typer.Argument(..., help="Link to the file or stream"),
    asset_type: str = typer.Option("pdf", "--type", "-t", help="pdf, ebook or audiobook"),
    category: str = typer.Option("General", "--category", "-c", help="Category"),
) -> None:
    """Add a digital asset link."""
    from .assets import AssetCreate, AssetManager, AssetType

    try:
        data = AssetCreate(
            title=title,
            url=url,
            asset_type=AssetType(asset_type.lower()),
            category=category,
        )
    except ValueError as e:
        print_error(str(e))
        console.print(f"[dim]Valid types: {', '.join(t.value for t in AssetType)}[/dim]")
        raise typer.Exit(1)

    asset = AssetManager(get_db()).create_asset(data)
    print_success(f"Added: {asset.title}")
    console.print(f"[dim]ID: {asset.id}[/dim]")


@asset_app.command("list")
def asset_list(
    asset_type: Optional[str] = typer.Option(None, "--type", "-t", help="pdf, ebook or audiobook"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Search titles"),
) -> None:
    """List digital assets."""
    from .assets import AssetManager, AssetType

    type_filter = None
    if asset_type:
        try:
            type_filter = AssetType(asset_type.lower())
        except ValueError:
            print_error(f"Invalid type: {asset_type}")
            raise typer.Exit(1)

    assets = AssetManager(get_db()).list_assets(asset_type=type_filter, search=search)

    if not assets:
        console.print("[dim]No digital assets found[/dim]")
        return

    table = Table(title="Digital Assets", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Type")
    table.add_column("Category")
    table.add_column("URL")
    for asset in assets:
        table.add_row(asset.id, asset.title, asset.asset_type, asset.category, asset.url)
    console.print(table)


@asset_app.command("delete")
def asset_delete(
    asset_id: str = typer.Argument(..., help="Asset ID"),
) -> None:
    """Delete a digital asset."""
    from .assets import AssetManager

    if AssetManager(get_db()).delete_asset(asset_id):
        print_success("Digital asset deleted")
    else:
        print_error(f"Digital asset not found: {asset_id}")
        raise typer.Exit(1)


# ============================================================================
# Class/Sector Commands
# ============================================================================


@class_app.command("add")
def class_add(
    name: str = typer.Argument(..., help="Class or sector name"),
) -> None:
    """Register a class or sector."""
    try:
        item = get_db().create_class(ClassSectorCreate(name=name))
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Registered class: {item.name}")
    console.print(f"[dim]ID: {item.id}[/dim]")


@class_app.command("list")
def class_list() -> None:
    """List classes and sectors with their number of users."""
    db = get_db()
    classes = db.list_classes()

    if not classes:
        console.print("[dim]No classes registered[/dim]")
        return

    table = Table(title="Classes and Sectors", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Users", justify="right")

    members = Counter(u.sector_or_class for u in db.list_users())
    for item in classes:
        table.add_row(item.id, item.name, str(members[item.name]))

    console.print(table)


@class_app.command("rename")
def class_rename(
    class_ref: str = typer.Argument(..., help="Class ID or current name"),
    name: str = typer.Argument(..., help="New name"),
) -> None:
    """Rename a class or sector and move its users along."""
    db = get_db()
    item = db.get_class(class_ref) or db.get_class_by_name(class_ref)
    if not item:
        print_error(f"Class not found: {class_ref}")
        raise typer.Exit(1)

    try:
        renamed = db.rename_class(item.id, ClassSectorCreate(name=name))
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Renamed: {item.name} -> {renamed.name}")


@class_app.command("delete")
def class_delete(
    class_ref: str = typer.Argument(..., help="Class ID or name"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete a class or sector. Its users keep their assignment."""
    db = get_db()
    item = db.get_class(class_ref) or db.get_class_by_name(class_ref)
    if not item:
        print_error(f"Class not found: {class_ref}")
        raise typer.Exit(1)

    if not force:
        if not typer.confirm(f"Delete class '{item.name}'?"):
            console.print("[dim]Cancelled.[/dim]")
            return

    db.delete_class(item.id)
    print_success(f"Deleted class: {item.name}")


# ============================================================================
# Version Command
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"schoollib version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
