from flight_delay.pipeline import PipelineRunner


def main() -> None:
    """Run the flight delay experiment with the default configuration."""
    runner = PipelineRunner("config/default.yaml")
    runner.run()


if __name__ == "__main__":
    main()
