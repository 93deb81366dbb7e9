"""
Configuration validation utilities.

This module turns the raw TOML document into typed configuration models:
monitors, notification channels and the initial global variables.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import (
    DEFAULT_CHANNEL,
    AppConfig,
    ChannelConfig,
    Exec,
    MonitorConfig,
    NotifySpec,
    ShellExec,
    SmtpConfig,
    SmtpLogin,
    SpawnExec,
)
from ..models.values import value_to_string
from ..validation import (
    ValidationError,
    validate_duration,
    validate_email_address,
    validate_email_addresses,
    validate_no_unknown_keys,
    validate_positive_integer,
    validate_regex_pattern,
    validate_string,
    validate_table,
)

logger = logging.getLogger(__name__)

DOCUMENT_KEYS = ("var", "monitor", "notify")
MONITOR_KEYS = ("every", "log", "cooldown", "match_log", "exec", "set", "push", "notify")
NOTIFY_SPEC_KEYS = ("channel", "title", "body")
CHANNEL_KEYS = ("every", "smtp")
SMTP_KEYS = ("from", "to", "port", "login")
LOGIN_KEYS = ("host", "username", "password")


def _prefixed(prefix: str, error: ValidationError) -> ValidationError:
    return ValidationError(
        f"{prefix}: {error}",
        field_name=error.field_name,
        value=error.value,
        severity=error.severity,
    )


def validate_exec(value: Any) -> Exec:
    """
    Validate the ``exec`` key.

    A string is a shell command line; an array is an argv vector whose
    items are converted to text.
    """
    if isinstance(value, str):
        if not value.strip():
            raise ValidationError("Key `exec` must not be empty.", field_name="exec", value=value)
        return ShellExec(value)
    if isinstance(value, list):
        if not value:
            raise ValidationError("Key `exec` must not be empty.", field_name="exec", value=value)
        return SpawnExec(tuple(value_to_string(item) for item in value))
    raise ValidationError(
        "Key `exec` must be a string or an array of strings.",
        field_name="exec",
        value=value,
    )


def validate_notify_spec(value: Any, monitor_name: str) -> NotifySpec:
    """Validate a monitor's ``notify`` key (channel name or table)."""
    title = f"Monitor `{monitor_name}` matched"
    body = "$match"

    if isinstance(value, str):
        channel = validate_string(value, "notify", allow_empty=False)
        return NotifySpec(channel=channel, title=title, body=body)

    if not isinstance(value, dict):
        raise ValidationError(
            "Key `notify` must be a string or a table.",
            field_name="notify",
            value=value,
        )

    validate_no_unknown_keys(value, NOTIFY_SPEC_KEYS, prefix="notify.")
    if "channel" not in value:
        raise ValidationError("Key `notify.channel` is required.", field_name="notify.channel")
    channel = validate_string(value["channel"], "notify.channel", allow_empty=False)
    if "title" in value:
        title = validate_string(value["title"], "notify.title")
    if "body" in value:
        body = validate_string(value["body"], "notify.body")
    return NotifySpec(channel=channel, title=title, body=body)


def validate_monitor_config(name: str, monitor_data: Dict[str, Any]) -> MonitorConfig:
    """
    Validate and create a MonitorConfig from one ``[monitor.<name>]`` table.

    Args:
        name: Monitor name (the table key)
        monitor_data: Raw monitor table from TOML

    Returns:
        Validated MonitorConfig instance

    Raises:
        ValidationError: If validation fails. Messages are not yet prefixed
            with the monitor name; validate_app_config does that.
    """
    validate_no_unknown_keys(monitor_data, MONITOR_KEYS)

    every = None
    if "every" in monitor_data:
        every = validate_duration(monitor_data["every"], "every")

    log = None
    if "log" in monitor_data:
        log = Path(validate_string(monitor_data["log"], "log", allow_empty=False))

    cooldown = None
    if "cooldown" in monitor_data:
        cooldown = validate_duration(monitor_data["cooldown"], "cooldown", allow_zero=True)

    match_log = None
    if "match_log" in monitor_data:
        match_log = validate_regex_pattern(monitor_data["match_log"], "match_log")

    if (log is None) != (match_log is None):
        raise ValidationError(
            "Keys `log` and `match_log` must be given together.",
            field_name="log" if log is None else "match_log",
        )
    if log is None and every is None:
        raise ValidationError(
            "Either `log` and `match_log` or `every` must be given.",
            field_name="log",
        )

    # Any write to the global variables needs the exclusive side of the lock.
    mutates_globals = False

    set_table: Dict[str, Any] = {}
    if "set" in monitor_data:
        set_table = dict(validate_table(monitor_data["set"], "set"))
        mutates_globals = True

    push_table: Dict[str, Any] = {}
    if "push" in monitor_data:
        push_table = dict(validate_table(monitor_data["push"], "push"))
        mutates_globals = True

    exec_spec: Optional[Exec] = None
    if "exec" in monitor_data:
        exec_spec = validate_exec(monitor_data["exec"])
        if isinstance(exec_spec, SpawnExec):
            mutates_globals = True

    notify = None
    if "notify" in monitor_data:
        notify = validate_notify_spec(monitor_data["notify"], name)

    return MonitorConfig(
        name=name,
        log=log,
        match_log=match_log,
        every=every,
        cooldown=cooldown,
        exec=exec_spec,
        set=set_table,
        push=push_table,
        notify=notify,
        mutates_globals=mutates_globals,
    )


def validate_smtp_config(smtp_data: Any) -> SmtpConfig:
    """Validate a channel's ``smtp`` table."""
    smtp_data = validate_table(smtp_data, "smtp")
    validate_no_unknown_keys(smtp_data, SMTP_KEYS, prefix="smtp.")

    if "from" not in smtp_data:
        raise ValidationError("Key `smtp.from` is required.", field_name="smtp.from")
    if "to" not in smtp_data:
        raise ValidationError("Key `smtp.to` is required.", field_name="smtp.to")

    sender = validate_email_address(smtp_data["from"], "smtp.from")
    recipients = validate_email_addresses(smtp_data["to"], "smtp.to")

    port = None
    if "port" in smtp_data:
        port = validate_positive_integer(
            smtp_data["port"], min_value=1, max_value=65535, field_name="smtp.port"
        )

    login = None
    if "login" in smtp_data:
        login_data = validate_table(smtp_data["login"], "smtp.login")
        validate_no_unknown_keys(login_data, LOGIN_KEYS, prefix="smtp.login.")
        for key in LOGIN_KEYS:
            if key not in login_data:
                raise ValidationError(
                    f"Key `smtp.login.{key}` is required.", field_name=f"smtp.login.{key}"
                )
        login = SmtpLogin(
            host=validate_string(login_data["host"], "smtp.login.host", allow_empty=False),
            username=validate_string(login_data["username"], "smtp.login.username"),
            password=validate_string(login_data["password"], "smtp.login.password"),
        )

    return SmtpConfig(sender=sender, recipients=tuple(recipients), port=port, login=login)


def validate_channel_config(name: str, channel_data: Dict[str, Any]) -> ChannelConfig:
    """Validate and create a ChannelConfig from one ``[notify.<name>]`` table."""
    validate_no_unknown_keys(channel_data, CHANNEL_KEYS)

    every = None
    if "every" in channel_data:
        every = validate_duration(channel_data["every"], "every")

    smtp = None
    if "smtp" in channel_data:
        smtp = validate_smtp_config(channel_data["smtp"])

    return ChannelConfig(name=name, every=every, smtp=smtp)


def validate_app_config(doc: Dict[str, Any]) -> AppConfig:
    """
    Validate the whole configuration document.

    Raises:
        ValidationError: On the first problem found
    """
    validate_no_unknown_keys(doc, DOCUMENT_KEYS)

    variables: Dict[str, Any] = {}
    if "var" in doc:
        variables = dict(validate_table(doc["var"], "var"))

    channels: Dict[str, ChannelConfig] = {}
    if "notify" in doc:
        for name, channel_data in validate_table(doc["notify"], "notify").items():
            if not isinstance(channel_data, dict):
                raise ValidationError(
                    f"Key `notify.{name}` must be a table.", field_name=f"notify.{name}"
                )
            try:
                channels[name] = validate_channel_config(name, channel_data)
            except ValidationError as e:
                raise _prefixed(f"Channel `{name}`", e) from e

    if "monitor" not in doc:
        raise ValidationError("No monitors found!", field_name="monitor")
    monitor_tables = validate_table(doc["monitor"], "monitor")
    if not monitor_tables:
        raise ValidationError("No monitors found!", field_name="monitor")

    monitors = []
    for name, monitor_data in monitor_tables.items():
        if not isinstance(monitor_data, dict):
            raise ValidationError(
                f"Key `monitor.{name}` must be a table.", field_name=f"monitor.{name}"
            )
        try:
            monitor = validate_monitor_config(name, monitor_data)
            if (
                monitor.notify is not None
                and monitor.notify.channel != DEFAULT_CHANNEL
                and monitor.notify.channel not in channels
            ):
                raise ValidationError(
                    f"Notification channel `{monitor.notify.channel}` is not declared.",
                    field_name="notify",
                    value=monitor.notify.channel,
                )
        except ValidationError as e:
            raise _prefixed(f"Monitor `{name}`", e) from e
        monitors.append(monitor)

    logger.debug(f"Validated {len(monitors)} monitor(s), {len(channels)} channel(s), {len(variables)} variable(s)")
    return AppConfig(monitors=monitors, variables=variables, channels=channels)
