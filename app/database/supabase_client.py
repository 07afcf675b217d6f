from typing import Callable
from fastapi import Request
from supabase import create_client, Client
from app.config.settings import Settings


class SupabaseClients:
    """Supabase clients owned by the process entry point.

    ``db`` uses the service role key and serves every table and storage call.
    Password sign-in and sign-up store the resulting session on the client
    that performed them, so those go through a fresh anon client each time.
    """

    def __init__(self, db: Client, auth_factory: Callable[[], Client]):
        self.db = db
        self._auth_factory = auth_factory

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseClients":
        db = create_client(settings.supabase_url, settings.supabase_service_role_key)
        return cls(
            db=db,
            auth_factory=lambda: create_client(settings.supabase_url, settings.supabase_key),
        )

    def auth_client(self) -> Client:
        return self._auth_factory()


def get_clients(request: Request) -> SupabaseClients:
    return request.app.state.clients


def get_supabase(request: Request) -> Client:
    return get_clients(request).db
