import json
import sys
from pathlib import Path
import click
from .logic import verify_envelope

@click.group()
def main():
    pass

@main.command("action")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def action_cmd(path: Path):
    result = verify_envelope(path)
    click.echo(json.dumps(result, sort_keys=True, separators=(",", ":"), ensure_ascii=False))
    if result["status"] != "PASS":
        sys.exit(1)

if __name__ == "__main__":
    main()
