"""Accumulate gas.js tracking configuration and render the snippet."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence, Union

from utils.snippets import (
    InvalidArgumentError,
    render_push,
    render_tag,
    validate_options,
)

DEFAULT_SCRIPT_URL = "//cdnjs.cloudflare.com/ajax/libs/gas/1.10.1/gas.min.js"

SET_ACCOUNT = "_setAccount"
SET_DOMAIN_NAME = "_setDomainName"
SET_ALLOW_LINKER = "_setAllowLinker"
MULTI_DOMAIN = "_gasMultiDomain"

# Methods gas.js accepts more than once per page.
MULTI_CALL_METHODS = frozenset({SET_ACCOUNT, SET_DOMAIN_NAME})

NAMESPACE_SEPARATOR = "."

DEFAULT_TRACKING_CALLS: list[Any] = [
    "_trackPageview",
    "_gasTrackForms",
    "_gasTrackOutboundLinks",
    "_gasTrackMaxScroll",
    "_gasTrackDownloads",
    ("_gasTrackYoutube", {"force": True}),
    ("_gasTrackVimeo", {"force": True}),
    "_gasTrackMailto",
]

AccountEntry = Union[str, tuple[str, str]]


def _accessor_result(entries: list[Any]) -> Any:
    if not entries:
        return None
    if len(entries) == 1:
        return entries[0]
    return list(entries)


def _require_identifier(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{label} must be a non-empty string, got {value!r}.")
    return value


def _copy_options(options: Any) -> Any:
    if isinstance(options, Mapping):
        return dict(options)
    if isinstance(options, Sequence) and not isinstance(options, str):
        return list(options)
    return options


def _require_tracker_name(value: Any) -> str:
    name = _require_identifier(value, "Tracker name")
    if NAMESPACE_SEPARATOR in name:
        raise InvalidArgumentError(f"Tracker name {name!r} must not contain '{NAMESPACE_SEPARATOR}'.")
    return name


class TrackingTagBuilder:
    """Builder for a gas.js `<script>` tag.

    Calls are kept in order of first registration. Single-slot methods are
    overwritten by later registrations; `_setAccount` and `_setDomainName`
    keep every invocation, keyed by namespace when one is given
    (e.g. `custom._setAccount`).
    """

    def __init__(self, calls: Any = None):
        self._script_url = DEFAULT_SCRIPT_URL
        self._accounts: list[AccountEntry] = []
        self._domains: list[str] = []
        self._calls: dict[str, Any] = {}
        if calls:
            self.register_calls(calls)

    def set_script_url(self, url: str) -> None:
        self._script_url = url

    def get_script_url(self) -> str:
        return self._script_url

    def register_calls(self, spec: Any, value: Any = None) -> None:
        """Register one method call or a batch of them.

        Args:
            spec: A method name, a mapping of name -> options, or a sequence whose
                elements are bare names or `(name, options)` pairs.
            value: Options for the single-name form. Must be omitted for batches.

        Raises:
            InvalidArgumentError: If any entry is malformed. Nothing is registered
                in that case.
        """
        pairs = self._resolve_call_pairs(spec, value)
        for name, options in pairs:
            self._register_call(name, options)

    def add_account(self, account: Any = None, name: str | None = None) -> Any:
        """Add one or more GA accounts and return the accounts set so far.

        A single id may be given a tracker name, which namespaces its
        `_setAccount` call. A mapping adds several at once; string keys are
        tracker names, integer keys mean no name.

        Returns:
            None when no account is set, the entry itself when there is exactly
            one, otherwise a list of entries. Named entries are `(name, id)` tuples.
        """
        if account is not None:
            entries = self._account_entries(account, name)
            for entry in entries:
                self._accounts.append(entry)
                if isinstance(entry, tuple):
                    namespace, account_id = entry
                    self._register_call(f"{namespace}{NAMESPACE_SEPARATOR}{SET_ACCOUNT}", account_id)
                else:
                    self._register_call(SET_ACCOUNT, entry)
        return _accessor_result(self._accounts)

    def add_domain(self, domain: Any = None) -> Any:
        """Add one or more tracked domains and return the domains set so far.

        Passing several domains at once turns on cross-domain tracking: the
        linker is allowed and gas.js multi-domain click tracking is enabled.
        """
        if domain is not None:
            if isinstance(domain, str):
                self._domains.append(_require_identifier(domain, "Domain"))
                self._register_call(SET_DOMAIN_NAME, domain)
            else:
                domains = self._domain_batch(domain)
                if domains:
                    self._domains.extend(domains)
                    self._register_call(SET_ALLOW_LINKER, True)
                    for value in domains:
                        self._register_call(SET_DOMAIN_NAME, value)
                    self._register_call(MULTI_DOMAIN, "click")
        return _accessor_result(self._domains)

    def push_statements(self) -> list[str]:
        """Return the `_gas.push` statements for the current state, in render order."""
        statements: list[str] = []
        for method, options in self._calls.items():
            if method not in MULTI_CALL_METHODS:
                statements.append(render_push(method, options))
                continue
            for key, invocation in options.items():
                multi_method = method if isinstance(key, int) else f"{key}{NAMESPACE_SEPARATOR}{method}"
                statements.append(render_push(multi_method, invocation))
        return statements

    def render(self) -> str:
        """Return the complete `<script>` tag. Rendering never changes state."""
        push_block = "".join(f"\n{statement}" for statement in self.push_statements())
        return render_tag(self._script_url, push_block)

    @classmethod
    def defaults_builder(cls, account: Any, domain: Any) -> TrackingTagBuilder:
        """Return a new builder preloaded with a recommended set of gas.js tracking calls.

        Account and domain calls always come first, followed by page view,
        form, outbound link, scroll, download, YouTube, Vimeo and mailto tracking.
        """
        builder = cls()
        builder._calls = {SET_ACCOUNT: {}, SET_DOMAIN_NAME: {}}
        builder.add_account(account)
        builder.add_domain(domain)
        builder.register_calls(DEFAULT_TRACKING_CALLS)
        return builder

    @staticmethod
    def with_defaults(account: Any, domain: Any) -> str:
        """Render a tag with the recommended gas.js tracking calls.

        Args:
            account: GA account id (or batch, as accepted by `add_account`).
            domain: Tracked domain (or batch, as accepted by `add_domain`).

        Returns:
            The rendered snippet.
        """
        return TrackingTagBuilder.defaults_builder(account, domain).render()

    def _resolve_call_pairs(self, spec: Any, value: Any) -> list[tuple[str, Any]]:
        if isinstance(spec, str):
            pairs = [(spec, value)]
        else:
            if value is not None:
                raise InvalidArgumentError("Options can only be passed with a single method name.")
            if isinstance(spec, Mapping):
                pairs = list(spec.items())
            elif isinstance(spec, Sequence) and not isinstance(spec, bytes):
                pairs = [self._call_pair(item) for item in spec]
            else:
                raise InvalidArgumentError(f"Unsupported call specification: {spec!r}")

        resolved: list[tuple[str, Any]] = []
        for name, options in pairs:
            self._split_method_name(name)
            validate_options(options)
            resolved.append((name, _copy_options(options)))
        return resolved

    @staticmethod
    def _call_pair(item: Any) -> tuple[str, Any]:
        if isinstance(item, str):
            return item, None
        if isinstance(item, (tuple, list)) and len(item) == 2:
            return item[0], item[1]
        # Single-key mappings, as YAML lists of `- _method: options` load.
        if isinstance(item, Mapping) and len(item) == 1:
            return next(iter(item.items()))
        raise InvalidArgumentError(
            f"Batch entries must be a method name or a (name, options) pair, got {item!r}.",
        )

    @staticmethod
    def _split_method_name(name: Any) -> tuple[str | None, str]:
        _require_identifier(name, "Method name")
        parts = name.split(NAMESPACE_SEPARATOR, 1)
        if len(parts) == 2 and parts[1] in MULTI_CALL_METHODS:
            if not parts[0]:
                raise InvalidArgumentError(f"Missing namespace in {name!r}.")
            return parts[0], parts[1]
        return None, name

    def _register_call(self, name: str, options: Any) -> None:
        if not self._register_multi_call(name, options):
            self._calls[name] = options

    def _register_multi_call(self, name: str, options: Any) -> bool:
        """Record a multi-call invocation; return False for single-slot methods."""
        namespace, method = self._split_method_name(name)
        if method not in MULTI_CALL_METHODS:
            return False

        invocations = self._calls.setdefault(method, {})
        if namespace is None:
            next_index = sum(1 for key in invocations if isinstance(key, int))
            invocations[next_index] = options
        else:
            invocations[namespace] = options
        return True

    @staticmethod
    def _account_entries(account: Any, name: str | None) -> list[AccountEntry]:
        if isinstance(account, str):
            account_id = _require_identifier(account, "Account id")
            if name:
                return [(_require_tracker_name(name), account_id)]
            return [account_id]

        if name:
            raise InvalidArgumentError("A tracker name can only be given with a single account id.")

        items: Iterable[tuple[Any, Any]]
        if isinstance(account, Mapping):
            items = account.items()
        elif isinstance(account, Sequence) and not isinstance(account, bytes):
            items = enumerate(account)
        else:
            raise InvalidArgumentError(f"Unsupported account value: {account!r}")

        entries: list[AccountEntry] = []
        for key, value in items:
            account_id = _require_identifier(value, "Account id")
            if isinstance(key, str) and not key.isdigit():
                entries.append((_require_tracker_name(key), account_id))
            elif isinstance(key, (int, str)):
                entries.append(account_id)
            else:
                raise InvalidArgumentError(f"Unsupported tracker name: {key!r}")
        return entries

    @staticmethod
    def _domain_batch(domain: Any) -> list[str]:
        if isinstance(domain, Mapping):
            values = list(domain.values())
        elif isinstance(domain, Sequence) and not isinstance(domain, bytes):
            values = list(domain)
        else:
            raise InvalidArgumentError(f"Unsupported domain value: {domain!r}")
        return [_require_identifier(value, "Domain") for value in values]
