"""agentgate quickstart: list a directory and run a command through the gateway."""

import asyncio
import sys

from agentgate import create_gateway


async def main(root: str) -> None:
    gateway = create_gateway()

    listing = await gateway.invoke_tool("tree_simple", {"dir": "/"}, root)
    if not listing.success:
        print(f"Error ({listing.error_type}): {listing.error}")
        return
    for entry in listing.output["tree"][0]["contents"]:
        print(f"{entry['type']:10s} {entry['name']}")

    result = await gateway.execute_bash("du -sh .", cwd=root)
    print(f"\n{result.output if result.success else result.error}")


asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "."))
