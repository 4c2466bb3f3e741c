#!/usr/bin/env python3
# generate_mocks.py
# Create synthetic sample orders: delivery-note PDF, Excel order sheet, CSV
# export and a photographed/scanned order (PNG).
# Writes output to data/mock_files/

import random
from pathlib import Path
from datetime import date, timedelta
import pandas as pd

# PDF creation
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

# Image creation
from PIL import Image, ImageDraw, ImageFont

OUT_DIR = Path("data/mock_files")

# helper data
CLIENTS = ["Mercadona", "ALDI Supermercados", "Lidl Canarias", "HiperDino", "Kanali", "Frutas Pérez"]

PRODUCT_POOL = [
    ("Albahaca", "bandejas"), ("Cilantro", "manojos"), ("Perejil", "manojos"),
    ("Cebollino", "bandejas"), ("Eneldo", "bandejas"), ("Romero", "bandejas"),
    ("Pak Choi", "kg"), ("Hierbabuena", "manojos"), ("Acelgas", "kg"), ("Rúcula", "kg"),
]


def rand_date(days_back=0):
    base = date.today() - timedelta(days=days_back)
    return base + timedelta(days=random.randint(0, 10))


def sample_items(n=3):
    return [(name, f"{random.randint(1, 60)} {unit}") for name, unit in random.sample(PRODUCT_POOL, n)]


# --- delivery note PDF ---
def make_pdf_order(path: Path, client, items, packing_date: date):
    c = canvas.Canvas(str(path), pagesize=A4)
    width, height = A4
    x = 50
    y = height - 60

    c.setFont("Helvetica-Bold", 14)
    c.drawString(x, y, f"{client} - Pedido")
    y -= 24
    c.setFont("Helvetica", 11)
    c.drawString(x, y, f"Cliente: {client}")
    y -= 16
    c.drawString(x, y, f"Fecha de carga: {packing_date.strftime('%d/%m/%Y')}")
    y -= 28

    c.setFont("Helvetica-Bold", 10)
    c.drawString(x, y, "Producto | Cantidad")
    y -= 14
    c.line(x, y + 6, width - 50, y + 6)
    c.setFont("Helvetica", 10)
    for name, qty in items:
        if y < 80:
            c.showPage()
            y = height - 60
        c.drawString(x, y, f"{name} | {qty}")
        y -= 14
    c.save()


# --- Excel order sheet (title row above the header, like hand-made sheets) ---
def make_excel_order(path: Path, client, items):
    rows = [{"Producto": name, "Cantidad": qty, "Cliente": client} for name, qty in items]
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame([{"Pedido": f"Cliente: {client}"}]).to_excel(
            writer, sheet_name="Pedido", index=False, header=False)
        pd.DataFrame(rows).to_excel(writer, sheet_name="Pedido", index=False, startrow=2)


# --- CSV export ---
def make_csv_order(path: Path, client, items, sep=","):
    rows = [{"Producto": name, "Cantidad": qty, "Cliente": client} for name, qty in items]
    pd.DataFrame(rows).to_csv(path, index=False, sep=sep)


# --- photographed / scanned order (PNG) ---
def make_scanned_order(path: Path, client, items, packing_date: date):
    W, H = 900, 700
    img = Image.new("RGB", (W, H), "white")
    d = ImageDraw.Draw(img)
    try:
        font = ImageFont.truetype("DejaVuSans.ttf", 20)
        font_bold = ImageFont.truetype("DejaVuSans-Bold.ttf", 22)
    except OSError:
        font = ImageFont.load_default()
        font_bold = font

    y = 30
    d.text((30, y), client.upper(), font=font_bold, fill="black"); y += 40
    d.text((30, y), f"Fecha envasado: {packing_date.strftime('%d-%m-%y')}", font=font, fill="black"); y += 40

    for name, qty in items:
        d.text((50, y), f"{qty} {name}", font=font, fill="black")
        y += 30
        if y > H - 60:
            break
    img.save(path)


def generate_samples(n_pdf=1, n_excel=1, n_csv=1, n_img=1, out_dir=OUT_DIR, seed=None):
    if seed is not None:
        random.seed(seed)
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    created = []
    for i in range(n_pdf):
        fname = out_dir / f"pedido_pdf_{i+1}.pdf"
        make_pdf_order(fname, random.choice(CLIENTS), sample_items(random.randint(2, 5)), rand_date(5))
        created.append(fname)
    for i in range(n_excel):
        fname = out_dir / f"pedido_excel_{i+1}.xlsx"
        make_excel_order(fname, random.choice(CLIENTS), sample_items(random.randint(2, 5)))
        created.append(fname)
    for i in range(n_csv):
        fname = out_dir / f"pedido_csv_{i+1}.csv"
        make_csv_order(fname, random.choice(CLIENTS), sample_items(random.randint(2, 5)), sep=random.choice([",", ";"]))
        created.append(fname)
    for i in range(n_img):
        fname = out_dir / f"pedido_foto_{i+1}.png"
        make_scanned_order(fname, random.choice(CLIENTS), sample_items(random.randint(2, 5)), rand_date(5))
        created.append(fname)
    return created


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Generate synthetic order documents")
    parser.add_argument("--pdf", type=int, default=1, help="Number of PDF delivery notes")
    parser.add_argument("--excel", type=int, default=1, help="Number of Excel order sheets")
    parser.add_argument("--csv", type=int, default=1, help="Number of CSV exports")
    parser.add_argument("--img", type=int, default=1, help="Number of photographed orders (PNG)")
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()
    files = generate_samples(n_pdf=args.pdf, n_excel=args.excel, n_csv=args.csv, n_img=args.img, seed=args.seed)
    print("Created files:")
    for f in files:
        print(" -", f)
