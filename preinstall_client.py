#!/usr/bin/env python3
"""Pre-install registration API client.

A thin wrapper around the registration backend's JSON API built on
``requests``.  It is used by maintenance scripts and by anyone driving
the admin dashboard operations from Python:

* :meth:`PreInstallAPI.submit` – post a registration form, optionally with files.
* :meth:`PreInstallAPI.list_submissions` – fetch one filtered page.
* :meth:`PreInstallAPI.iter_submissions` – walk every page of a listing.
* :meth:`PreInstallAPI.get_submission` – fetch a single record.
* :meth:`PreInstallAPI.delete_submission` – delete a record.
* :meth:`PreInstallAPI.get_filters` – distinct cities, states and cabinet types.

Every method returns a tuple ``(result, error)``; ``error`` is ``None``
on success and otherwise a dictionary with ``status_code`` and
``message`` keys.  Running the module as a script offers the same
operations on the command line::

    python preinstall_client.py --base-url http://localhost:3000 list --city Springfield
    python preinstall_client.py delete 42
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Error = Dict[str, Any]
FileSpec = Tuple[str, BinaryIO]


class PreInstallAPI:
    """Client for the pre-install registration API."""

    def __init__(
        self,
        *,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Server root, e.g. ``http://localhost:3000``.  The
                ``/api`` prefix is added by the client.
            session: Optional requests session.  One is created if not supplied.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] | None = None,
        data: Dict[str, Any] | None = None,
        files: Dict[str, FileSpec] | None = None,
    ) -> Tuple[Optional[Any], Optional[Error]]:
        """Perform an HTTP request against ``/api``.

        Returns:
            A tuple ``(data, error)``.  On failure ``data`` is ``None``
            and ``error`` holds ``status_code`` (``None`` for connection
            problems) and ``message``, taken from the server's
            ``{"error": ...}`` body when available.
        """
        url = f"{self.base_url}/api{path}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                data=data,
                files=files,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    message = err_json.get("error") or err_json.get("detail") or str(err_json)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    # ------------------------------------------------------------------
    # Submission operations
    # ------------------------------------------------------------------
    def submit(
        self,
        form: Dict[str, str],
        *,
        phasing_file: Optional[FileSpec] = None,
        timing_plans_file: Optional[FileSpec] = None,
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Post a registration form.

        Args:
            form: Form fields keyed by their camelCase names
                (``intersectionName``, ``city``, ``cabinetType``...).
            phasing_file: Optional ``(filename, fileobj)`` for the phasing sheet.
            timing_plans_file: Optional ``(filename, fileobj)`` for the timing plans.
        Returns:
            ``({"success", "message", "id"}, None)`` on success.
        """
        files: Dict[str, FileSpec] = {}
        if phasing_file:
            files["phasingFile"] = phasing_file
        if timing_plans_file:
            files["timingPlans"] = timing_plans_file
        return self._request("POST", "/submit", data=form, files=files or None)

    def list_submissions(
        self,
        *,
        search: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        cabinet_type: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Fetch one page of submissions.

        Returns:
            The page dictionary (``submissions``, ``total``, ``page``,
            ``limit``, ``totalPages``) and an error, if any.
        """
        params: Dict[str, Any] = {"page": page, "limit": limit}
        for key, value in (("search", search), ("city", city), ("state", state), ("cabinetType", cabinet_type)):
            if value:
                params[key] = value
        return self._request("GET", "/submissions", params=params)

    def iter_submissions(self, *, limit: int = 50, **filters: Any) -> Iterator[Dict[str, Any]]:
        """Yield every submission matching ``filters``, page by page.

        Stops at the last page.  Raises ``RuntimeError`` if a page cannot
        be fetched, since a partial export would be silently wrong.
        """
        page = 1
        while True:
            data, error = self.list_submissions(page=page, limit=limit, **filters)
            if error:
                raise RuntimeError(f"Failed to fetch page {page}: {error['message']}")
            yield from data["submissions"]
            if page >= data["totalPages"]:
                return
            page += 1

    def get_submission(self, submission_id: Any) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("GET", f"/submissions/{submission_id}")

    def delete_submission(self, submission_id: Any) -> Tuple[bool, Optional[Error]]:
        """Delete a submission.

        Returns:
            ``(True, None)`` on success; ``(False, error)`` otherwise.  A
            missing id yields an error with ``status_code`` 404.
        """
        data, error = self._request("DELETE", f"/submissions/{submission_id}")
        if error:
            return False, error
        return bool(data and data.get("success")), None

    def get_filters(self) -> Tuple[Dict[str, List[str]], Optional[Error]]:
        data, error = self._request("GET", "/filters")
        if error:
            return {"cities": [], "states": [], "cabinetTypes": []}, error
        return data, None


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Query and manage pre-install registrations.")
    ap.add_argument("--base-url", default="http://localhost:3000", help="Server root URL")
    sub = ap.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="List submissions (all pages)")
    list_cmd.add_argument("--search")
    list_cmd.add_argument("--city")
    list_cmd.add_argument("--state")
    list_cmd.add_argument("--cabinet-type")

    show_cmd = sub.add_parser("show", help="Show one submission")
    show_cmd.add_argument("id", type=int)

    delete_cmd = sub.add_parser("delete", help="Delete one submission")
    delete_cmd.add_argument("id", type=int)

    sub.add_parser("filters", help="Show available filter values")

    args = ap.parse_args(argv)
    client = PreInstallAPI(base_url=args.base_url)

    if args.command == "list":
        try:
            rows = list(
                client.iter_submissions(
                    search=args.search,
                    city=args.city,
                    state=args.state,
                    cabinet_type=args.cabinet_type,
                )
            )
        except RuntimeError as exc:
            print(f"[!] {exc}", file=sys.stderr)
            return 1
        print(json.dumps(rows, indent=2))
        return 0

    if args.command == "show":
        data, error = client.get_submission(args.id)
    elif args.command == "delete":
        ok, error = client.delete_submission(args.id)
        data = {"deleted": args.id} if ok else None
    else:
        data, error = client.get_filters()

    if error:
        print(f"[!] {error['message']}", file=sys.stderr)
        return 2 if error["status_code"] == 404 else 1
    print(json.dumps(data, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
