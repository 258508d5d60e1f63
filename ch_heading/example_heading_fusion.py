"""
Example: Orientation Fusion on a Simulated Handheld Session

Feeds a synthetic orientation stream (20 Hz) and angular-rate stream (50 Hz)
through the OrientationEngine and compares the fused heading with the raw
platform heading and the true heading.

Can run with:
    - Default parameters: python -m ch_heading.example_heading_fusion
    - Named preset: python -m ch_heading.example_heading_fusion --preset steady
    - JSON config: python -m ch_heading.example_heading_fusion --config engine.json

Session timeline:
    0-10 s   flat, slow clockwise turn (compass mode)
    10-20 s  tilt towards vertical and back (quaternion submode)
    20-24 s  fast turn at 45 °/s (instability debouncing)
    24-30 s  flat, slow turn
    30-60 s  raised upright (AR mode), turn crosses north, gyro drives heading

Prints a machine-readable [HEADING_SUMMARY] JSON line at the end.
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from fieldcompass import (
    PRESETS,
    EngineConfig,
    OperatingMode,
    OrientationEngine,
    RateSample,
    SensorSample,
    load_config,
)
from fieldcompass.utils.angles import heading_from_yaw, normalize_heading, shortest_angle_diff

logger = logging.getLogger(__name__)

AR_SWITCH_TIME = 30.0


def true_heading(t: float) -> Tuple[float, float]:
    """True heading [deg] and its rate [deg/s] at time t [s]."""
    if t < 20.0:
        return 30.0 + 2.0 * t, 2.0
    if t < 24.0:
        return 70.0 + 45.0 * (t - 20.0), 45.0
    return normalize_heading(250.0 + 4.0 * (t - 24.0)), 4.0


def true_pitch(t: float) -> float:
    """Device pitch (beta) [deg] at time t [s]."""
    if 10.0 <= t < 14.0:
        return 15.0 + 70.0 * (t - 10.0) / 4.0
    if 14.0 <= t < 18.0:
        return 85.0
    if 18.0 <= t < 20.0:
        return 85.0 - 70.0 * (t - 18.0) / 2.0
    if t >= AR_SWITCH_TIME:
        return 15.0 + 75.0 * min(1.0, (t - AR_SWITCH_TIME) / 2.0)
    return 15.0


def simulate_stream(
    duration: float = 60.0,
    orientation_hz: float = 20.0,
    rate_hz: float = 50.0,
    seed: int = 42,
) -> List[Tuple[float, str, object]]:
    """Generate interleaved orientation and rate events.

    Returns:
        Time-sorted list of (t [s], kind, payload) with kind 'orientation',
        'rate' or 'mode'.
    """
    rng = np.random.default_rng(seed)
    events = []

    for t in np.arange(0.0, duration, 1.0 / orientation_hz):
        heading, _ = true_heading(t)
        # Platform yaw is counter-clockwise: alpha = 360 - heading
        alpha = normalize_heading(360.0 - heading + rng.normal(0.0, 1.5))
        sample = SensorSample(
            alpha=alpha,
            beta=true_pitch(t) + rng.normal(0.0, 0.5),
            gamma=rng.normal(0.0, 0.5),
            timestamp=t * 1000.0,
        )
        events.append((float(t), 'orientation', sample))

    gyro_bias = 0.3  # deg/s
    for t in np.arange(0.0, duration, 1.0 / rate_hz):
        _, rate_deg_s = true_heading(t)
        sample = RateSample(
            yaw_rate=-rate_deg_s + gyro_bias + rng.normal(0.0, 0.5),
            pitch_rate=0.0,
            roll_rate=0.0,
            timestamp=t * 1000.0,
        )
        events.append((float(t), 'rate', sample))

    events.append((AR_SWITCH_TIME, 'mode', OperatingMode.AR))
    events.sort(key=lambda e: e[0])
    return events


def run_fusion(config: EngineConfig, events) -> Dict[str, np.ndarray]:
    """Run the engine over an event list and record every orientation tick."""
    engine = OrientationEngine(config)

    records = []
    for t, kind, payload in events:
        if kind == 'mode':
            engine.set_operating_mode(payload)
        elif kind == 'rate':
            engine.handle_rate(payload)
        else:
            snapshot = engine.handle_orientation(payload)
            if snapshot is None:
                continue
            records.append((
                t,
                true_heading(t)[0],
                heading_from_yaw(payload.alpha),
                snapshot.heading,
                snapshot.confidence,
                float(snapshot.quaternion_active),
                snapshot.pitch,
                float(snapshot.gyro_available),
            ))

    data = np.array(records)
    debug = engine.get_debug_snapshot()
    return {
        't': data[:, 0],
        'truth': data[:, 1],
        'raw': data[:, 2],
        'fused': data[:, 3],
        'confidence': data[:, 4],
        'quaternion': data[:, 5],
        'pitch': data[:, 6],
        'gyro': data[:, 7],
        'update_count': debug.update_count,
        'transitions': debug.extras['submode_transitions'],
    }


def summarize(results: Dict[str, np.ndarray]) -> Dict:
    """Heading error statistics of the raw and fused streams."""
    err_raw = shortest_angle_diff(results['raw'], results['truth'])
    err_fused = shortest_angle_diff(results['fused'], results['truth'])
    return {
        'n_snapshots': int(len(results['t'])),
        'update_count': int(results['update_count']),
        'submode_transitions': int(results['transitions']),
        'quaternion_fraction': float(np.mean(results['quaternion'])),
        'final_gyro_available': bool(results['gyro'][-1]),
        'rmse': {
            'raw': float(np.sqrt(np.mean(err_raw ** 2))),
            'fused': float(np.sqrt(np.mean(err_fused ** 2))),
        },
    }


def plot_results(results: Dict[str, np.ndarray], figs_dir: Path) -> None:
    """Plot heading, confidence and submode over the session."""
    t = results['t']

    fig, (ax1, ax2, ax3) = plt.subplots(3, 1, figsize=(12, 10), sharex=True)

    ax1.plot(t, results['truth'], 'k-', linewidth=2, label='True Heading')
    ax1.plot(t, results['raw'], 'c.', markersize=2, alpha=0.5, label='Raw Platform Heading')
    ax1.plot(t, results['fused'], 'r-', linewidth=1.5, label='Fused Heading')
    ax1.axvline(AR_SWITCH_TIME, color='g', linestyle='--', label='AR Mode')
    ax1.set_ylabel('Heading [deg]', fontsize=12)
    ax1.set_ylim([0, 360])
    ax1.set_title('Orientation Fusion: Heading', fontsize=14, fontweight='bold')
    ax1.legend(fontsize=10, loc='upper left')
    ax1.grid(True, alpha=0.3)

    ax2.plot(t, results['confidence'], 'b-', linewidth=1.5)
    ax2.set_ylabel('Confidence', fontsize=12)
    ax2.set_ylim([0, 1.05])
    ax2.grid(True, alpha=0.3)

    ax3.plot(t, results['pitch'], 'k-', linewidth=1.5, label='Pitch (beta)')
    ax3.fill_between(t, 0, 100 * results['quaternion'], color='orange', alpha=0.3,
                     label='Quaternion Submode')
    ax3.fill_between(t, 0, 50 * results['gyro'], color='green', alpha=0.2,
                     label='Gyro Heading')
    ax3.set_xlabel('Time [s]', fontsize=12)
    ax3.set_ylabel('Pitch [deg]', fontsize=12)
    ax3.legend(fontsize=10, loc='upper left')
    ax3.grid(True, alpha=0.3)
    ax3.set_xlim([0, t[-1]])

    plt.tight_layout()
    fig.savefig(figs_dir / 'heading_fusion.svg', dpi=300, bbox_inches='tight')
    print(f"  [OK] Saved: {figs_dir / 'heading_fusion.svg'}")
    plt.close('all')


def resolve_config(preset: str, config_path: Optional[str]) -> EngineConfig:
    if config_path:
        return load_config(config_path)
    return EngineConfig.from_preset(preset)


def main():
    """Main execution with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Orientation fusion on a simulated handheld session",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default parameters
  python -m ch_heading.example_heading_fusion

  # Heavier filtering, no figures
  python -m ch_heading.example_heading_fusion --preset steady --no-plot

  # Parameters from a JSON file
  python -m ch_heading.example_heading_fusion --config engine.json
        """
    )
    parser.add_argument(
        "--preset", choices=sorted(PRESETS), default="baseline",
        help="Named engine preset (default: baseline)"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="JSON configuration file (overrides --preset)"
    )
    parser.add_argument(
        "--duration", type=float, default=60.0,
        help="Session length in seconds (default: 60)"
    )
    parser.add_argument(
        "--seed", type=int, default=42,
        help="Random seed for sensor noise (default: 42)"
    )
    parser.add_argument(
        "--no-plot", action="store_true",
        help="Skip figure generation"
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log submode transitions and mode changes"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    print("\n" + "=" * 70)
    print("Orientation Fusion: Simulated Handheld Session")
    print("=" * 70)

    config = resolve_config(args.preset, args.config)
    source = args.config or f"preset '{args.preset}'"
    print(f"\nConfiguration ({source}):")
    print(f"  Velocity threshold:  {config.velocity_threshold} deg/s")
    print(f"  Slerp gain:          {config.slerp_gain}")
    print(f"  Drift correction:    {config.drift_correction_rate}")
    print(f"  Rate unit:           {config.rate_unit.value}")

    events = simulate_stream(duration=args.duration, seed=args.seed)
    print(f"\nSimulated {len(events)} events over {args.duration:.0f} s")

    results = run_fusion(config, events)
    summary = summarize(results)

    print("\n" + "=" * 70)
    print("RESULTS")
    print("=" * 70)
    print(f"  Snapshots published:   {summary['update_count']}")
    print(f"  Submode transitions:   {summary['submode_transitions']}")
    print(f"  Time in quaternion:    {100 * summary['quaternion_fraction']:.1f} %")
    print(f"  Raw heading RMSE:      {summary['rmse']['raw']:.2f} deg")
    print(f"  Fused heading RMSE:    {summary['rmse']['fused']:.2f} deg")

    if not args.no_plot:
        figs_dir = Path(__file__).parent / 'figs'
        figs_dir.mkdir(exist_ok=True)
        print("\nGenerating plots...")
        plot_results(results, figs_dir)

    print(f"\n[HEADING_SUMMARY] {json.dumps(summary)}")


if __name__ == "__main__":
    main()
