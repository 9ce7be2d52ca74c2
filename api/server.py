"""
FastAPI server exposing the record store as a REST API.
"""

import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Body
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from recdb.engine import DatabaseEngine
from recdb.errors import (
    DatabaseError,
    DatabaseExistsError,
    DatabaseNotFoundError,
    DuplicatePrimaryKeyError,
    RowNotFoundError,
)
from recdb.log import get_logger
from recdb.types import schema_description

logger = get_logger("api")

# Initialize database engine
engine = DatabaseEngine(os.environ.get("RECDB_DATA_DIR", "data"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    engine.close()


app = FastAPI(title="Record Store API", version="1.0.0", lifespan=lifespan)

# Enable CORS for browser clients
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Pydantic models for request validation
class DatabaseCreate(BaseModel):
    name: str


class RowCreate(BaseModel):
    id: int
    name: str


class RowUpdate(BaseModel):
    name: str


class Query(BaseModel):
    query: str


def _http_error(e: DatabaseError) -> HTTPException:
    """Map a domain error to an HTTP status."""
    if isinstance(e, (DatabaseNotFoundError, RowNotFoundError)):
        status = 404
    elif isinstance(e, (DatabaseExistsError, DuplicatePrimaryKeyError)):
        status = 409
    else:
        status = 400
    return HTTPException(status_code=status, detail=str(e))


def _row_dict(table, row) -> Dict[str, Any]:
    return {col.name: value for col, value in zip(table.schema, row)}


# ========== DATABASES ==========

@app.get("/databases")
async def list_databases():
    """List registered databases and those with a file on disk."""
    return {
        "databases": engine.list_databases(),
        "on_disk": engine.storage.list_databases(),
    }


@app.post("/databases", status_code=201)
async def create_database(database: DatabaseCreate):
    """Create a database, loading its file if one exists."""
    try:
        table = engine.registry.create(database.name)
    except DatabaseError as e:
        raise _http_error(e)
    return {"status": "OK", "name": database.name, "row_count": len(table)}


@app.get("/databases/{name}")
async def get_database_info(name: str):
    """Get schema and row count of a database."""
    try:
        table = engine.registry.use(name)
    except DatabaseError as e:
        raise _http_error(e)
    return {
        "name": name,
        "schema": schema_description(table.schema),
        "row_count": len(table),
    }


@app.delete("/databases/{name}")
async def drop_database(name: str):
    """Drop a database from memory. Its file is kept."""
    try:
        engine.registry.drop(name)
    except DatabaseError as e:
        raise _http_error(e)
    if engine.session.name == name:
        engine.session.clear()
    return {"status": "OK", "message": f"Database '{name}' dropped"}


# ========== ROWS ==========

@app.get("/databases/{name}/rows")
async def list_rows(name: str, value: Optional[str] = None):
    """
    List all rows, or with ``value`` only those whose indexed column equals it.
    """
    try:
        table = engine.registry.use(name)
    except DatabaseError as e:
        raise _http_error(e)
    rows = table.list_all() if value is None else table.select_by_index(value)
    return {"rows": [_row_dict(table, row) for row in rows]}


@app.post("/databases/{name}/rows", status_code=201)
async def insert_row(name: str, row: RowCreate):
    """Insert a row."""
    try:
        table = engine.registry.use(name)
        table.insert((row.id, row.name))
    except DatabaseError as e:
        raise _http_error(e)
    return {"status": "OK", "id": row.id}


@app.get("/databases/{name}/rows/{row_id}")
async def get_row(name: str, row_id: int):
    """Get a row by id."""
    try:
        table = engine.registry.use(name)
        row = table.get(row_id)
    except DatabaseError as e:
        raise _http_error(e)
    return _row_dict(table, row)


@app.put("/databases/{name}/rows/{row_id}")
async def update_row(name: str, row_id: int, row: RowUpdate):
    """Replace the name of an existing row."""
    try:
        table = engine.registry.use(name)
        table.update(row_id, (row_id, row.name))
    except DatabaseError as e:
        raise _http_error(e)
    return {"status": "OK", "message": "Row updated successfully"}


@app.delete("/databases/{name}/rows/{row_id}")
async def delete_row(name: str, row_id: int):
    """Delete a row by id."""
    try:
        table = engine.registry.use(name)
        table.get(row_id)
        table.remove(row_id)
    except DatabaseError as e:
        raise _http_error(e)
    return {"status": "OK", "message": "Row deleted successfully"}


# ========== GENERAL PURPOSE ENDPOINTS ==========

@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Record Store API",
        "version": "1.0.0",
        "endpoints": {
            "databases": {
                "GET /databases": "List databases",
                "POST /databases": "Create database",
                "GET /databases/{name}": "Get database info",
                "DELETE /databases/{name}": "Drop database",
            },
            "rows": {
                "GET /databases/{name}/rows": "List rows (?value= uses the name index)",
                "POST /databases/{name}/rows": "Insert row",
                "GET /databases/{name}/rows/{id}": "Get row",
                "PUT /databases/{name}/rows/{id}": "Update row",
                "DELETE /databases/{name}/rows/{id}": "Delete row",
            },
            "general": {
                "POST /query": "Execute one command line",
                "POST /flush": "Save every database to disk",
            },
        },
    }


@app.post("/query")
async def execute_query(query: Query = Body(...)):
    """Execute a raw command line against the server's session."""
    try:
        result = engine.execute(query.query)
    except DatabaseError as e:
        raise _http_error(e)
    if result is None:
        return {"status": "OK"}
    return result


@app.post("/flush")
async def flush():
    """Save every registered database to disk."""
    try:
        saved = engine.registry.flush_all()
    except DatabaseError as e:
        logger.error("Flush failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "OK", "saved": saved}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
