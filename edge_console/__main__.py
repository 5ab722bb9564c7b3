from edge_console.monitor import run_console


if __name__ == "__main__":
    raise SystemExit(run_console())
