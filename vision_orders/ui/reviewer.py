# vision_orders/ui/reviewer.py
# Streamlit reviewer: pick a parsed order, fix client / products / quantities /
# layout, untick the lines that should not get a label, save for generation.
#   streamlit run vision_orders/ui/reviewer.py
import json
from pathlib import Path

import pandas as pd
import streamlit as st

from vision_orders.config import get_config
from vision_orders.models import LabelType
from vision_orders.resolver import label_type_title, resolve_label_type
from vision_orders.transform import item_from_dict, item_to_dict, order_from_dict, order_to_dict

config = get_config()
OUT = Path(config.output_dir).resolve()
REVIEWED = OUT / "reviewed"

EDITABLE_COLUMNS = ["include", "productName", "quantityText", "client", "labelType"]

st.set_page_config(page_title="Pedidos visión", layout="wide")
st.title("Pedidos visión: revisión de pedido")

files = sorted(OUT.glob("*_order.json"))
if not files:
    st.info(f"No parsed orders found in {OUT}. Run: python run_all.py parse <documents>")
    st.stop()

sel = st.selectbox("Pedido", files, format_func=lambda p: p.name)
order = order_from_dict(json.loads(sel.read_text(encoding="utf-8")))

if order.notes:
    st.warning(order.notes)

col1, col2 = st.columns(2)
client = col1.text_input("Cliente", value=order.client)
packing_date = col2.text_input("Fecha de envasado (AAAA-MM-DD)", value=order.packing_date or "")
if client != order.client:
    st.caption(f"Layout for this client: {label_type_title(resolve_label_type(client))}")

df = pd.DataFrame([item_to_dict(it) for it in order.items], columns=["id"] + EDITABLE_COLUMNS)
edited = st.data_editor(
    df,
    column_config={
        "id": st.column_config.TextColumn("id", disabled=True),
        "include": st.column_config.CheckboxColumn("Incluir"),
        "productName": st.column_config.TextColumn("Producto"),
        "quantityText": st.column_config.TextColumn("Cantidad"),
        "client": st.column_config.TextColumn("Cliente"),
        "labelType": st.column_config.SelectboxColumn(
            "Etiqueta", options=[t.value for t in LabelType], required=True),
    },
    num_rows="dynamic",
    hide_index=True,
    use_container_width=True,
)

with st.expander("Texto reconocido"):
    st.text(order.raw_text)

if st.button("Guardar revisión"):
    rows = edited.fillna("").to_dict(orient="records")
    order.client = client
    order.packing_date = packing_date.strip() or None
    order.items = [item_from_dict(dict(r, client=r.get("client") or client), i) for i, r in enumerate(rows)]
    REVIEWED.mkdir(parents=True, exist_ok=True)
    outp = REVIEWED / sel.name
    outp.write_text(json.dumps(order_to_dict(order), indent=2, ensure_ascii=False), encoding="utf-8")
    st.success(f"Saved reviewed order to {outp} ({sum(1 for it in order.items if it.include)} lines selected)")
