"""Access to the hosted Supabase project.

Table reads/writes, RPC calls and storage all go through the client
returned by :func:`get_supabase`. Auth calls (sign in / sign up) use a
throwaway client from :func:`get_auth_client` so the shared client never
switches to a member's JWT.
"""
from flask import current_app
from supabase import create_client, Client


def _new_client() -> Client:
    return create_client(current_app.config["SUPABASE_URL"], current_app.config["SUPABASE_KEY"])


def get_supabase() -> Client:
    client = current_app.extensions.get("supabase")
    if client is None:
        client = _new_client()
        current_app.extensions["supabase"] = client
    return client


def get_auth_client() -> Client:
    client = current_app.extensions.get("supabase_auth")
    if client is not None:
        return client
    return _new_client()


def rows(resp):
    return resp.data if hasattr(resp, "data") and resp.data else []


def first(resp):
    data = rows(resp)
    return data[0] if data else None


def fetch_one(table, column, value, columns="*"):
    resp = get_supabase().table(table).select(columns).eq(column, value).limit(1).execute()
    return first(resp)


def count_where(table, **filters):
    query = get_supabase().table(table).select("id", count="exact")
    for column, value in filters.items():
        query = query.eq(column, value)
    resp = query.execute()
    if getattr(resp, "count", None) is not None:
        return resp.count
    return len(rows(resp))


def call_rpc(name, params=None):
    """Call a named remote procedure and return its data.

    Errors raised by PostgREST propagate untouched; the app-level handler
    turns them into the usual error envelope.
    """
    current_app.logger.info("rpc %s %s", name, params or {})
    resp = get_supabase().rpc(name, params or {}).execute()
    return getattr(resp, "data", None)
