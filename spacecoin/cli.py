"""Command line interface for SpaceCoin."""
from __future__ import annotations

import argparse
import json
from typing import List

from .utils import from_units, to_units


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="spacecoin")
    sub = p.add_subparsers(dest="cmd")

    quote_p = sub.add_parser("quote")
    quote_p.add_argument("--spc-reserve", type=float, required=True)
    quote_p.add_argument("--eth-reserve", type=float, required=True)
    quote_p.add_argument("--amount", type=float, required=True)
    quote_p.add_argument("--direction", choices=["spc-to-eth", "eth-to-spc"], default="spc-to-eth")
    quote_p.add_argument("--tax-percent", type=int, default=0)

    sim_p = sub.add_parser("simulate")
    sim_p.add_argument("--spc-reserve", type=float, required=True)
    sim_p.add_argument("--eth-reserve", type=float, required=True)
    sim_p.add_argument("--direction", choices=["spc-to-eth", "eth-to-spc"], default="spc-to-eth")
    sim_p.add_argument("--tax-percent", type=int, default=2)
    sim_p.add_argument("--grid", default="1,10,100,1000")

    demo_p = sub.add_parser("demo")
    demo_p.add_argument("--trade", type=float, default=100.0)

    return p


def main(argv: List[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    if args.cmd == "quote":
        from .amm.v2_math import spot_price
        from .sim.simulate import quote

        out = quote(
            args.direction,
            to_units(args.amount),
            to_units(args.spc_reserve),
            to_units(args.eth_reserve),
            args.tax_percent,
        )
        print(
            json.dumps(
                {
                    "direction": args.direction,
                    "amount_in": args.amount,
                    "amount_out": from_units(out),
                    "spc_price_eth": spot_price(to_units(args.spc_reserve), to_units(args.eth_reserve)),
                }
            )
        )
    elif args.cmd == "simulate":
        from .sim.simulate import main as sim_main

        sim_main(
            spc_reserve=args.spc_reserve,
            eth_reserve=args.eth_reserve,
            tax_percent=args.tax_percent,
            grid=args.grid,
            direction=args.direction,
        )
    elif args.cmd == "demo":
        from .sim.demo import main as demo_main

        demo_main(trade=args.trade)
    else:
        p.print_help()
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
