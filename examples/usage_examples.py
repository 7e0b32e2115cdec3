#!/usr/bin/env python3
"""
Example script showing how to use the artifact resolver.
"""

import json
from pathlib import Path

from artifact_resolver import ResolutionConfig, ResolutionContext
from artifact_resolver.reporting import export_resolved_csv, print_summary


def example_basic_resolution():
    """Example: Resolve a coordinate from Maven Central."""
    print("="*60)
    print("Example 1: Basic Resolution")
    print("="*60)

    context = ResolutionContext()
    context.add_dependency("com.google.guava:guava:32.1.2-jre")

    context.resolve_dependencies()

    print(f"\nResolved {len(context.dependencies_notation())} dependencies:")
    for notation in context.dependencies_notation():
        print(f"  {notation}")
    print(f"\nClasspath: {context.resolved_classpath()}")


def example_graph_only():
    """Example: Inspect the graph without downloading artifacts."""
    print("\n" + "="*60)
    print("Example 2: Dependency Graph Without Downloads")
    print("="*60)

    context = ResolutionContext(config=ResolutionConfig(
        download_artifacts=False,
        lenient_metadata=True,
        scope_filter=["compile", "runtime"],
    ))
    context.add_dependency("org.apache.httpcomponents:httpclient:4.5.14")
    context.add_dependency("junit:junit:4.13.2", scope="test")

    result = context.resolve_dependencies()

    print(json.dumps(context.dependencies_graph(), indent=2))
    for error in result.errors:
        print(f"Metadata error: {error}")


def example_build_artifacts():
    """Example: Prefer a locally built artifact over the published one."""
    print("\n" + "="*60)
    print("Example 3: Build Artifacts")
    print("="*60)

    context = ResolutionContext(local_repo_path=Path("./output/m2"))
    context.add_remote_repository_by_url("https://repo.spring.io/release/")
    context.add_build_artifact(
        "org.slf4j:slf4j-api:2.0.9",
        "./target/slf4j-api-2.0.9.jar",
        "./pom.xml",
    )
    context.add_dependency("ch.qos.logback:logback-classic:1.4.11", exclusions=["org.slf4j:slf4j-simple"])

    result = context.resolve_dependencies()

    print_summary(result)
    csv_file = export_resolved_csv(result, Path("./output/example3"), "logback")
    print(f"Resolved dependencies saved to: {csv_file}")


if __name__ == "__main__":
    import sys

    print("Artifact Resolver - Example Usage")
    print("="*60)
    print("\nNOTE: These examples require network access to Maven Central.")

    try:
        # Example 1: Basic resolution
        example_basic_resolution()

        # Example 2: Graph without downloads
        example_graph_only()

        # Example 3: Build artifacts (needs a locally built jar and pom.xml)
        # example_build_artifacts()

        print("\n" + "="*60)
        print("Examples completed successfully!")
        print("Check ~/.m2/repository and ./output for the results.")
        print("="*60)

    except Exception as e:
        print(f"\nError running examples: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)
