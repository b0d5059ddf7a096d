#!/usr/bin/env python3
"""
Local development server for the Storyline API.

Regeneration runs on an in-process thread pool unless REGENERATION_BACKEND says otherwise,
so no Redis or Celery worker is needed locally.
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

src_dir = Path(__file__).parent / "src"
sys.path.insert(0, str(src_dir))

os.environ.setdefault('ENVIRONMENT', 'development')
os.environ.setdefault('REGENERATION_BACKEND', 'thread')
if not os.getenv('DATABASE_URL') and not (os.getenv('SUPABASE_PROJECT_REF') and os.getenv('SUPABASE_DB_PASSWORD')):
    print("No database configured; using ./storyline-dev.db")
    os.environ['DATABASE_URL'] = 'sqlite:///./storyline-dev.db'

if __name__ == "__main__":
    import uvicorn
    from storyline.infrastructure.db import create_all

    create_all()
    print("Starting Storyline API")
    print("Docs: http://localhost:8000/docs")
    print("Health Check: http://localhost:8000/health")
    print("Press Ctrl+C to stop\n")

    uvicorn.run(
        "storyline.api.main:app",
        host=os.getenv('API_HOST', '0.0.0.0'),
        port=int(os.getenv('API_PORT', '8000')),
        reload=True,
        log_level="info"
    )
