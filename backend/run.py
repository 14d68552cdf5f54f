import uvicorn
import argparse
import os


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Fetchr request engine")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host interface to bind")
    parser.add_argument("--port", type=int, default=8333, help="Port to run the backend on")
    parser.add_argument("--dir", type=str, default=None, help="Workspace directory for data")

    args = parser.parse_args()

    # Settings are read at import time, so the override must land first
    if args.dir:
        os.environ["FETCHR_WORKSPACE_DIR"] = args.dir

    from fetchr.main import app

    print(f"Starting Fetchr on http://{args.host}:{args.port}")

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        reload=False,
    )
