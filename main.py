#!/usr/bin/env python3
"""
Altitude Boiling Point monitor
Main CLI with 4 modes: run, simulate, convert, table
"""

import argparse
import sys
import time

from fusion import (PressureAltitudeEstimator, InvalidReading, PermissionDenied, boiling_point_from_altitude,
                    boiling_point_from_pressure, boiling_point_table)
from hw import BarometerReader, GNSSReceiver, SimulatedBarometer, SimulatedLocation
from utils import (Settings, UnitPreferences, describe_state, format_altitude, format_pressure,
                   format_temperature, setup_logging, temperature_unit)


def resolve_units(args, settings: Settings) -> UnitPreferences:
    """CLI unit flags override environment preferences."""
    prefs = settings.units
    return UnitPreferences(
        use_celsius=args.celsius or prefs.use_celsius,
        use_meters=args.meters or prefs.use_meters,
        use_kpa=args.kpa or prefs.use_kpa,
    )


def monitor(estimator: PressureAltitudeEstimator, units: UnitPreferences,
            duration=None) -> int:
    """
    Start the estimator and print a status line whenever it changes.

    Returns:
        0 on a clean stop, 1 if monitoring ended with an error
    """
    last_line = [None]

    def on_state(state):
        line = describe_state(state, units)
        if line != last_line[0]:
            last_line[0] = line
            print(line, flush=True)

    estimator.add_listener(on_state)
    estimator.start()

    start_time = time.time()
    try:
        # A permission grant restarts the estimator, so keep waiting while denied
        while estimator.is_active or estimator.state.error_kind == PermissionDenied.__name__:
            if duration and (time.time() - start_time) >= duration:
                print(f"\n✓ Run complete ({duration}s)")
                break
            time.sleep(0.1)
    except KeyboardInterrupt:
        print("\n✓ Stopped by user")
    finally:
        estimator.stop()

    return 1 if estimator.state.error_message else 0


def mode_run(args):
    """
    Run mode: Live GNSS + barometer monitoring.
    """
    settings = Settings.from_env()
    setup_logging(args.log_level or settings.log_level, args.log_file or settings.log_file)
    units = resolve_units(args, settings)

    gnss = GNSSReceiver(port=args.gnss_port or settings.gnss_port,
                        baudrate=args.gnss_baud or settings.gnss_baud)
    baro = BarometerReader(bus_number=settings.baro_i2c_bus if args.i2c_bus is None else args.i2c_bus,
                           device_addr=settings.baro_i2c_addr if args.i2c_addr is None else args.i2c_addr,
                           poll_interval=settings.baro_poll_interval)

    print(f"=== RUN MODE ===")
    print(f"GNSS: {gnss.port} @ {gnss.baudrate} baud")
    print(f"Barometer: I2C bus {baro.bus_number}, address 0x{baro.device_addr:02X}\n")

    estimator = PressureAltitudeEstimator(gnss, baro)
    try:
        return monitor(estimator, units, args.duration)
    finally:
        gnss.observe_permission(None)
        gnss.close()
        baro.close()


def mode_simulate(args):
    """
    Simulate mode: Same monitoring loop against synthetic sources.
    """
    settings = Settings.from_env()
    setup_logging(args.log_level or settings.log_level, args.log_file or settings.log_file)
    units = resolve_units(args, settings)

    print(f"=== SIMULATE MODE ===")
    print(f"Start altitude: {args.altitude:.1f} m, climb rate: {args.climb_rate:+.2f} m/s\n")

    location = SimulatedLocation(altitude_m=args.altitude, interval=args.fix_interval)
    baro = SimulatedBarometer(start_altitude_m=args.altitude, climb_rate_mps=args.climb_rate,
                              interval=args.sample_interval, fail_after=args.fail_after)

    estimator = PressureAltitudeEstimator(location, baro)
    return monitor(estimator, units, args.duration)


def mode_convert(args):
    """
    Convert mode: Boiling point for a single pressure or altitude.
    """
    setup_logging(args.log_level or 'WARNING')
    units = UnitPreferences(use_celsius=args.celsius, use_meters=args.meters, use_kpa=args.kpa)

    try:
        if args.pressure_kpa is not None:
            bp_c = boiling_point_from_pressure(args.pressure_kpa)
            source = format_pressure(args.pressure_kpa, units.use_kpa)
        else:
            bp_c = boiling_point_from_altitude(args.altitude_m)
            source = format_altitude(args.altitude_m, units.use_meters)
    except InvalidReading as e:
        print(f"✗ {e}")
        return 1

    print(f"Boiling point at {source}: {format_temperature(bp_c, units.use_celsius)}")
    return 0


def mode_table(args):
    """
    Table mode: Boiling point over an altitude range.
    """
    setup_logging(args.log_level or 'WARNING')
    units = UnitPreferences(use_celsius=args.celsius, use_meters=args.meters, use_kpa=args.kpa)

    try:
        altitudes, pressures, boiling_points = boiling_point_table(args.start, args.stop, args.step)
    except (InvalidReading, ValueError) as e:
        print(f"✗ {e}")
        return 1

    print(f"{'Altitude':>12} | {'Pressure':>12} | Boiling point ({temperature_unit(units.use_celsius)})")
    for alt, p, bp in zip(altitudes, pressures, boiling_points):
        print(f"{format_altitude(alt, units.use_meters):>12} | "
              f"{format_pressure(p, units.use_kpa):>12} | "
              f"{format_temperature(bp, units.use_celsius)}")

    return 0


def _add_unit_flags(parser):
    parser.add_argument('--celsius', action='store_true', help='Show temperatures in °C')
    parser.add_argument('--meters', action='store_true', help='Show altitude in meters')
    parser.add_argument('--kpa', action='store_true', help='Show pressure in kPa')


def _add_log_flags(parser):
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Log level (default: LOG_LEVEL or INFO)')
    parser.add_argument('--log-file', help='Log file path')


def build_parser():
    parser = argparse.ArgumentParser(
        description='Boiling point of water from GNSS altitude and barometric pressure',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest='mode', help='Operation mode')

    # === RUN MODE ===
    run_parser = subparsers.add_parser('run', help='Live monitoring from GNSS + BMP280')
    run_parser.add_argument('--gnss-port', help='GNSS serial port (default: GNSS_PORT or /dev/ttyUSB0)')
    run_parser.add_argument('--gnss-baud', type=int, help='GNSS baud rate (default: GNSS_BAUD or 9600)')
    run_parser.add_argument('--i2c-bus', type=int, help='Barometer I2C bus (default: BARO_I2C_BUS or 1)')
    run_parser.add_argument('--i2c-addr', type=lambda v: int(v, 0),
                            help='Barometer I2C address (default: BARO_I2C_ADDR or 0x76)')
    run_parser.add_argument('-d', '--duration', type=float,
                            help='Run duration in seconds (optional, infinite if not set)')
    _add_unit_flags(run_parser)
    _add_log_flags(run_parser)

    # === SIMULATE MODE ===
    sim_parser = subparsers.add_parser('simulate', help='Monitoring loop with synthetic sensors')
    sim_parser.add_argument('-a', '--altitude', type=float, default=1600.0,
                            help='Start altitude in meters (default: 1600)')
    sim_parser.add_argument('-c', '--climb-rate', type=float, default=0.0,
                            help='Climb rate in m/s (default: 0)')
    sim_parser.add_argument('--fix-interval', type=float, default=1.0,
                            help='Seconds between GNSS fixes (default: 1.0)')
    sim_parser.add_argument('--sample-interval', type=float, default=0.5,
                            help='Seconds between barometer samples (default: 0.5)')
    sim_parser.add_argument('--fail-after', type=int,
                            help='Inject a barometer failure after N samples')
    sim_parser.add_argument('-d', '--duration', type=float, default=10.0,
                            help='Run duration in seconds (default: 10)')
    _add_unit_flags(sim_parser)
    _add_log_flags(sim_parser)

    # === CONVERT MODE ===
    convert_parser = subparsers.add_parser('convert', help='Boiling point for one pressure or altitude')
    group = convert_parser.add_mutually_exclusive_group(required=True)
    group.add_argument('-p', '--pressure-kpa', type=float, help='Ambient pressure in kPa')
    group.add_argument('-a', '--altitude-m', type=float, help='Altitude in meters')
    _add_unit_flags(convert_parser)
    _add_log_flags(convert_parser)

    # === TABLE MODE ===
    table_parser = subparsers.add_parser('table', help='Boiling point over an altitude range')
    table_parser.add_argument('--start', type=float, default=0.0, help='First altitude in meters')
    table_parser.add_argument('--stop', type=float, default=5000.0, help='Last altitude in meters')
    table_parser.add_argument('--step', type=float, default=500.0, help='Altitude step in meters')
    _add_unit_flags(table_parser)
    _add_log_flags(table_parser)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.mode:
        parser.print_help()
        return 1

    # Route to appropriate mode
    if args.mode == 'run':
        return mode_run(args)
    elif args.mode == 'simulate':
        return mode_simulate(args)
    elif args.mode == 'convert':
        return mode_convert(args)
    elif args.mode == 'table':
        return mode_table(args)
    else:
        print(f"Unknown mode: {args.mode}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
