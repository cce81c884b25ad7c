"""Example tagging API using cinetag-auth for request authentication.

This service:
  - Verifies Clerk-issued JWTs locally using the issuer's public keys (JWKS)
  - Maps each verified identity to a local user via a user directory
  - Lets anonymous visitors read, but requires sign-in to write

Set CLERK_JWKS_URL (and optionally CLERK_ISSUER / CLERK_AUDIENCE) before
starting. Without CLERK_JWKS_URL every authenticated route answers 500.

Run:  uvicorn main:app --reload --port 8080
"""

import logging
import uuid

from fastapi import Depends, FastAPI, HTTPException

from cinetag_auth import InMemoryUserDirectory, LocalUser, ServiceAuth

logging.basicConfig(level=logging.INFO)

# ---------------------------------------------------------------------------
# Setup — JWKS endpoint and issuer come from the environment
# ---------------------------------------------------------------------------

users = InMemoryUserDirectory()
service_auth = ServiceAuth.from_env(directory=users)

app = FastAPI(title="cinetag auth example")

tags: dict[str, dict] = {}


# ---------------------------------------------------------------------------
# Public routes — anonymous access allowed, viewer attached when signed in
#
# A request without an Authorization header never triggers a JWKS fetch.
# A request with a broken Authorization header is still rejected with 401.
# ---------------------------------------------------------------------------


@app.get("/tags")
async def list_tags(user: LocalUser | None = Depends(service_auth.optional_user)):
    return {
        "tags": list(tags.values()),
        "viewer": user.display_name if user else None,
    }


@app.get("/tags/{tag_id}")
async def get_tag(tag_id: str, user: LocalUser | None = Depends(service_auth.optional_user)):
    tag = tags.get(tag_id)
    if tag is None:
        raise HTTPException(status_code=404, detail="Tag not found")
    return {**tag, "is_owner": user is not None and tag["owner"] == str(user.id)}


# ---------------------------------------------------------------------------
# Protected routes — a valid bearer token is required
# ---------------------------------------------------------------------------


@app.post("/tags", status_code=201)
async def create_tag(title: str, user: LocalUser = Depends(service_auth.current_user)):
    tag_id = uuid.uuid4().hex
    tags[tag_id] = {"id": tag_id, "title": title, "owner": str(user.id)}
    return tags[tag_id]


@app.get("/users/me")
async def me(user: LocalUser = Depends(service_auth.current_user)):
    return {
        "id": str(user.id),
        "email": user.email,
        "display_name": user.display_name,
        "avatar_url": user.avatar_url,
    }


@app.get("/health")
async def health():
    return {"status": "ok", "auth_configured": service_auth.is_configured}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8080, reload=True)
