#!/usr/bin/env python3
"""
Run the Work Item Intelligence MCP server in STDIO mode
Reads configuration from the environment or a .env file
"""
import sys
import os

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from work_item_intel.server import mcp

if __name__ == "__main__":
    # Run with stdio transport (default for MCP)
    mcp.run()
