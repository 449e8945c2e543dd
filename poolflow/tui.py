import argparse

import requests
from rich.console import Console
from rich.table import Table

API_BASE = "http://localhost:8000"
console = Console()


def call_token_transfers(api_base, pool_id, limit=10):
    resp = requests.get(
        f"{api_base}/api/pools/{pool_id}/token-transfers",
        params={"limit": limit},
        timeout=120,
    )
    resp.raise_for_status()
    return resp.json()


def fmt(value):
    try:
        return f"{float(value):,.2f}"
    except (TypeError, ValueError):
        return "N/A"


def render(data):
    flow = data.get("flowAnalysis", {})
    periods = flow.get("periods", {})
    advanced = flow.get("advanced", {})
    insights = flow.get("insights", {})
    quality = data.get("dataQuality", {})

    console.rule(f"[bold cyan]{data.get('tokenSymbol', 'TOKEN')} flows[/bold cyan]")

    hdr = Table(show_header=False, show_edge=False, pad_edge=False)
    hdr.add_row("Token", data.get("tokenAddress", "N/A"))
    hdr.add_row("Source", str(quality.get("source")))
    hdr.add_row("Coverage", f"{quality.get('coverage')} ({quality.get('timespan')})")
    if quality.get("warning"):
        hdr.add_row("Warning", f"[yellow]{quality['warning']}[/yellow]")
    if data.get("message"):
        hdr.add_row("Message", data["message"])
    console.print(hdr)

    console.rule("[bold green]Periods[/bold green]")
    pt = Table()
    for col in ("Period", "Inflow", "Outflow", "Net", "Tx", "Addresses", "Quality"):
        pt.add_column(col)
    for name in ("24h", "7d", "30d", "all"):
        p = periods.get(name, {})
        net = p.get("netFlow", 0)
        colour = "green" if net > 0 else "red" if net < 0 else "white"
        pt.add_row(
            name,
            fmt(p.get("inflow")),
            fmt(p.get("outflow")),
            f"[{colour}]{fmt(net)}[/{colour}]",
            str(p.get("txCount", 0)),
            str(p.get("uniqueAddresses", 0)),
            str(p.get("dataQuality")),
        )
    console.print(pt)

    console.rule("[bold yellow]Whales[/bold yellow]")
    whales = (advanced.get("whaleActivity") or {}).get("topWhales") or []
    if whales:
        wt = Table()
        for col in ("Address", "Volume", "Net", "Tx", "Type"):
            wt.add_column(col)
        for w in whales:
            wt.add_row(w["address"], fmt(w["totalVolume"]), fmt(w["netFlow"]), str(w["txCount"]), w["type"])
        console.print(wt)
    else:
        console.print("No whale activity.")

    console.rule("[bold magenta]Smart money[/bold magenta]")
    movers = (advanced.get("smartMoney") or {}).get("movements") or []
    if movers:
        st = Table()
        for col in ("Address", "Net", "Tx", "Avg size"):
            st.add_column(col)
        for m in movers:
            st.add_row(m["address"], fmt(m["profitability"]), str(m["txCount"]), fmt(m["avgTxSize"]))
        console.print(st)
    else:
        console.print("No smart money movements.")

    console.rule("[bold blue]Insights[/bold blue]")
    it = Table(show_header=False)
    it.add_row("Trend", str(insights.get("trend")))
    it.add_row("Momentum", str(insights.get("momentum")))
    it.add_row("Phase", str(insights.get("phase")))
    it.add_row("Smart money", str(insights.get("smartMoneySignal")))
    console.print(it)


def main():
    ap = argparse.ArgumentParser(description="Print a pool's token flow report from a running API")
    ap.add_argument("--pool-id", required=True)
    ap.add_argument("--api-base", default=API_BASE)
    ap.add_argument("--limit", type=int, default=10)
    args = ap.parse_args()

    render(call_token_transfers(args.api_base, args.pool_id, args.limit))


if __name__ == "__main__":
    main()
