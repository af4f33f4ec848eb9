#!/usr/bin/env python3
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

print(
    f"[mcp] chat-bridge port={os.environ.get('MCP_CHAT_PORT', '9222')} | "
    f"wait_timeout={os.environ.get('MCP_CHAT_WAIT_TIMEOUT', '300')}s",
    file=sys.stderr,
)

from mcp_servers.chat_bridge.main import main  # noqa: E402

if __name__ == "__main__":
    main()
