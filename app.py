import json

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from constants import BANK_LIMIT_PERCENTAGE, DEFAULT_ANNUAL_INCOME, DEFAULT_USD_KRW, HISTORY_MONTHS_COUNT
from dsr import compute_dsr, max_additional_principal
from financial_structs import InvalidInputError, Owner, holdings_from_records
from main import sample_household
from portfolio import (DashboardView, allocation_breakdown, compute_history, compute_stats,
                       filter_holdings, history_to_frame)
from visualizer import CATEGORY_LABELS

# Page Config
st.set_page_config(page_title="Household Wealth Dashboard", layout="wide")
st.title("Household Wealth Dashboard")

# --- SIDEBAR: Global Settings ---
st.sidebar.header("View")
owner_choice = st.sidebar.selectbox("Owner", ["Total"] + [o.value for o in Owner])
view_choice = st.sidebar.selectbox("Section", [v.value for v in DashboardView])
owner = None if owner_choice == "Total" else owner_choice

st.sidebar.header("Inputs")
exchange_rate = st.sidebar.number_input("USD/KRW", value=float(DEFAULT_USD_KRW), min_value=0.01)
annual_income = st.sidebar.number_input("Annual Income (KRW)", value=DEFAULT_ANNUAL_INCOME, step=1_000_000, min_value=0)
months_count = st.sidebar.slider("History Months", 3, 24, HISTORY_MONTHS_COUNT)
uploaded = st.sidebar.file_uploader("Holdings JSON", type=["json"])

if uploaded is not None:
    try:
        holdings = holdings_from_records(json.load(uploaded))
    except (InvalidInputError, KeyError, TypeError, ValueError) as e:
        st.sidebar.error(f"Could not load holdings: {e}")
        st.stop()
else:
    holdings = sample_household()

stats = compute_stats(holdings, exchange_rate, owner=owner, view=view_choice)
history = compute_history(holdings, exchange_rate, months_count=months_count, owner=owner, view=view_choice)

# 1. Metrics
m1, m2, m3, m4 = st.columns(4)
m1.metric("Net Worth", f"₩{stats.net_worth:,.0f}")
m2.metric("Total Assets", f"₩{stats.total_assets:,.0f}")
m3.metric("Total Liabilities", f"₩{stats.total_liabilities:,.0f}")
m4.metric("Total Profit", f"₩{stats.total_profit:,.0f}", f"{stats.total_roi_percent:+.2f}%")

tab_history, tab_dsr, tab_allocation = st.tabs(["History", "DSR", "Allocation"])

with tab_history:
    df = history_to_frame(history)
    fig = go.Figure()
    fig.add_trace(go.Bar(x=df.index, y=df['total_assets'], name='Assets', marker_color='#3b82f6'))
    fig.add_trace(go.Bar(x=df.index, y=df['total_liabilities'], name='Liabilities', marker_color='#f43f5e'))
    fig.add_trace(go.Scatter(x=df.index, y=df['net_worth'], mode='lines+markers', name='Net Worth',
                             line=dict(color='#111827', width=2)))
    fig.update_layout(title="Net Worth History", yaxis_title="KRW", barmode='group', height=450)
    st.plotly_chart(fig, use_container_width=True)
    st.caption("Past months are approximated from creation dates and a fixed market variance factor.")

with tab_dsr:
    dsr = compute_dsr(filter_holdings(holdings, owner=owner), annual_income)
    c1, c2, c3 = st.columns(3)
    c1.metric("DSR", f"{dsr.ratio_percent:.2f}%", "EXCEEDED" if dsr.is_exceeded else None, delta_color="inverse")
    c2.metric("Annual Debt Service", f"₩{dsr.total_annual_debt_service:,.0f}")
    c3.metric("Remaining Capacity", f"₩{dsr.available_additional_annual_capacity:,.0f}")

    gauge = go.Figure(go.Indicator(
        mode="gauge+number", value=dsr.ratio_percent, number={'suffix': '%'},
        gauge={'axis': {'range': [0, 100]},
               'bar': {'color': '#dc2626' if dsr.is_exceeded else '#2563eb'},
               'threshold': {'line': {'color': '#f87171', 'width': 4}, 'value': BANK_LIMIT_PERCENTAGE}}))
    gauge.update_layout(height=300)
    st.plotly_chart(gauge, use_container_width=True)

    with st.expander("What-if: new loan"):
        new_rate = st.number_input("Rate (%)", value=4.5, min_value=0.0)
        new_months = st.number_input("Term (months)", value=360, min_value=1)
        new_type = st.selectbox("Repayment", ["원리금균등분할상환", "만기일시상환"])
        st.write(f"Max additional principal: **₩{max_additional_principal(dsr, new_rate, int(new_months), new_type):,.0f}**")

    detail = st.radio("Loans", ["Included", "Excluded"], horizontal=True)
    if detail == "Included":
        rows = [{
            "Loan": s.loan.name,
            "Rate (%)": s.loan.interest_rate,
            "Repayment": s.loan.repayment_type.value if s.loan.repayment_type else "",
            "Annual Debt Service": f"{s.annual_debt_service:,.0f}",
            "Monthly Payment": f"{s.monthly_payment:,.0f}",
        } for s in dsr.included_loans]
    else:
        rows = [{"Loan": l.name, "Rate (%)": l.interest_rate, "Amount": f"{l.amount:,.0f}"} for l in dsr.excluded_loans]
    if rows:
        st.table(pd.DataFrame(rows))
    else:
        st.info("No loans in this group.")

with tab_allocation:
    group_by = st.selectbox("Group By", ["category", "country", "name"])
    breakdown = allocation_breakdown(filter_holdings(holdings, owner, view_choice), exchange_rate, group_by)
    if breakdown.empty:
        st.info("No holdings to show.")
    else:
        labels = [CATEGORY_LABELS.get(k, k) for k in breakdown.index]
        pie = go.Figure(go.Pie(labels=labels, values=breakdown.values, hole=0.5))
        pie.update_layout(height=450)
        st.plotly_chart(pie, use_container_width=True)
