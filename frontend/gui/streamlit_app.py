import altair as alt
import pandas as pd
import streamlit as st

from frontend.gui.components.common import (
    call_api,
    format_price,
    get_api,
    init_monitoring,
    get_session,
    to_dataframe,
)
from core.config import get_settings
from providers.shop_api.health import check_api_health

st.set_page_config(page_title="Radeo", layout="wide")

settings = get_settings()
monitoring = init_monitoring()

# ---------------------------
# Sidebar: stato API + sessione
# ---------------------------
st.sidebar.title("Radeo")
session = get_session()
if session:
    st.sidebar.success(f"Signed in as {session.name}")
else:
    st.sidebar.info("Not signed in")

if check_api_health(settings.api_url):
    st.sidebar.caption(f"API online • {settings.api_url}")
else:
    st.sidebar.error(f"API non raggiungibile: {settings.api_url}")

# ---------------------------
# HOME: categorie + prodotti in evidenza
# ---------------------------
st.title("Radeo")
api = get_api()

categories = call_api(api.get_categories(), "home.categories", monitoring) or []
featured = call_api(api.get_products(featured="true"), "home.featured", monitoring) or []

col_a, col_b = st.columns([1, 2])
with col_a:
    st.subheader("Categories")
    if not categories:
        st.caption("No categories yet.")
    else:
        df_cat = to_dataframe(categories, columns=["name", "productCount"])
        st.dataframe(df_cat, use_container_width=True, hide_index=True)
        chart = (
            alt.Chart(df_cat)
            .mark_bar()
            .encode(x=alt.X("productCount:Q", title="Products"), y=alt.Y("name:N", sort="-x", title=None))
        )
        st.altair_chart(chart, use_container_width=True)

with col_b:
    st.subheader("Featured")
    if not featured:
        st.caption("Nessun prodotto in evidenza.")
    for product in featured:
        with st.container(border=True):
            c1, c2 = st.columns([1, 3])
            with c1:
                if product.get("imageUrl"):
                    st.image(product["imageUrl"], use_container_width=True)
            with c2:
                st.markdown(f"**{product.get('name', '')}**")
                st.write(product.get("description", ""))
                st.write(format_price(product.get("price")))

if featured:
    st.markdown("---")
    df = pd.json_normalize(featured)
    st.caption(f"{len(df)} featured products • average price {format_price(df['price'].mean())}")
